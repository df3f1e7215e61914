from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .entry import Entry  # noqa: F401

__all__ = [
    "Base",
    "Entry",
]
