"""Access filters and the `/metrics` authorization gate."""
