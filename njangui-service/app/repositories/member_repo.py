"""
Member repository — data-access layer for the ``members`` table.

Extends generic CRUD with a phone-number look-up used during duplicate
detection in the service layer.
"""

from typing import Optional

from app.models.member import Member
from app.repositories.base import BaseRepository


class MemberRepository(BaseRepository[Member]):
    """Concrete repository for :class:`Member` entities."""

    async def get_by_phone_number(self, phone_number: str) -> Optional[Member]:
        """
        Look up a member by phone number.

        Used to reject a duplicate registration *before* hitting the unique
        index, yielding a friendlier error message in the common case.
        """
        return await self.get_by("phone_number", phone_number)
