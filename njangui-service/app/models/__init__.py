"""SQLModel table models — import here so metadata is populated."""

from app.models.fund import Fund  # noqa: F401
from app.models.member import Member  # noqa: F401
