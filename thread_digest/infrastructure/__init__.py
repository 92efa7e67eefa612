"""Infrastructure adapters (Redis, local storage)."""
