"""Book caches."""
