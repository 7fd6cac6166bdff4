"""
Database model registry.

Importing this module ensures all table models are registered with
SQLModel's metadata, which is required before calling ``create_all()``.
"""

from app.models.fund import Fund  # noqa: F401
from app.models.member import Member  # noqa: F401
