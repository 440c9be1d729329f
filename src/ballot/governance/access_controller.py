"""Access controller — the single administrator of an election.

The administrator is fixed for the lifetime of the election. There is
no transfer of ownership.
"""

from __future__ import annotations

from ballot.errors import Unauthorized
from ballot.models.election import Identity, canonical_identity


class AccessController:
    """Authorises administrator-only operations. No side effects."""

    def __init__(self, administrator: str) -> None:
        self._administrator = canonical_identity(administrator)

    @property
    def administrator(self) -> Identity:
        return self._administrator

    def is_admin(self, caller: str) -> bool:
        return caller.strip() == self._administrator

    def require_admin(self, caller: str) -> None:
        """Raise Unauthorized unless caller is the administrator."""
        if not self.is_admin(caller):
            raise Unauthorized("Caller is not the administrator")
