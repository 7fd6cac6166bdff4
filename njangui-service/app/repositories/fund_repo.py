"""
Fund repository — data-access layer for the ``funds`` table.

Adds a look-up by name, the fund's business key.
"""

from typing import Optional

from app.models.fund import Fund
from app.repositories.base import BaseRepository


class FundRepository(BaseRepository[Fund]):
    """Concrete repository for :class:`Fund` entities."""

    async def get_by_name(self, name: str) -> Optional[Fund]:
        """Return the fund called ``name``, or ``None``."""
        return await self.get_by("name", name)
