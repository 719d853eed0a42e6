"""Core infrastructure: configuration resolution, database, logging, errors."""
