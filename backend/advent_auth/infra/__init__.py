"""Adapters implementing the service ports (PyJWT, requests, Redis, SQLAlchemy)."""
