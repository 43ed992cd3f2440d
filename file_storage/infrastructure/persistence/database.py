"""Declarative Base for the file storage ORM model.

Engine and session management belong to the host application; this package
only declares the table it maps File records to.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for file storage models."""
