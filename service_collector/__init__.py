"""
Container metrics collector service.
"""
