"""Infrastructure adapters: logging and object storage."""
