"""My List — user-scoped ordered list with version-tagged page caching."""
