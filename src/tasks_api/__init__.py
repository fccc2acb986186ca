"""Tasks API: a minimal CRUD service for task records gated by an API key."""

__version__ = "1.0.0"
