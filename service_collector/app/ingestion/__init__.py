"""
Ingestion package: fetching, filtering, the collection cycle and the
published snapshot it produces.
"""
