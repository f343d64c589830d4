"""Domain layer - Entities and services with no I/O of their own."""
