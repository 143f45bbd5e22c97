"""
Container discovery package.

Selects the running containers that opted in to collection and match the
configured label filter.
"""
