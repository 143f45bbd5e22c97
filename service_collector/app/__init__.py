"""
Collector Service package.

Discovers containers labelled for Prometheus, fetches and filters their
metrics on a fixed interval, and republishes the result either as one merged
`/metrics` page or as a Prometheus HTTP service discovery target list at `/sd`.
"""
