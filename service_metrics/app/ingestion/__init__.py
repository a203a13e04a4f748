"""Statistics collection for a scrape pass."""
