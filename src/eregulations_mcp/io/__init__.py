"""I/O layer: caching."""
