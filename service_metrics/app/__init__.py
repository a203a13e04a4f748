"""
Metrics Service package.

Serves the `/metrics` scrape endpoint of the search engine: gates access,
gathers index, task and search-queue statistics and renders them in the
Prometheus text exposition format.
"""
