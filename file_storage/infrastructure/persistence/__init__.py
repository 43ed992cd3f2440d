"""Persistence boundary: plain-record transformer and SQLAlchemy model."""
