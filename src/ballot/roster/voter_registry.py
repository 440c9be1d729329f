"""Voter registry — who may submit proposals and cast a vote.

The registry is the source of truth for participation. It is mutated
only while voters are being registered (registration) and while the
voting session is open (the vote ledger marks voters as having voted).
Phase and administrator checks happen in the election context before
the registry is touched.

Invariants enforced:
- One record per identity; re-registration is rejected.
- is_registered is never cleared.
"""

from __future__ import annotations

from typing import Any, Iterator

from ballot.errors import DuplicateRegistration, NotAVoter
from ballot.models.election import Identity, Voter, canonical_identity


class VoterRegistry:
    """Registry of all voters in an election.

    Thread-safety: this class is not thread-safe. The service layer
    serialises access.
    """

    def __init__(self) -> None:
        self._voters: dict[Identity, Voter] = {}

    @classmethod
    def from_records(cls, records: dict[str, dict[str, Any]]) -> VoterRegistry:
        """Restore a registry from persisted voter records."""
        registry = cls()
        for identity, data in records.items():
            registry._voters[canonical_identity(identity)] = Voter(
                is_registered=bool(data.get("is_registered", True)),
                has_voted=bool(data.get("has_voted", False)),
                voted_proposal_id=data.get("voted_proposal_id"),
            )
        return registry

    def to_records(self) -> dict[str, dict[str, Any]]:
        return {
            identity: {
                "is_registered": voter.is_registered,
                "has_voted": voter.has_voted,
                "voted_proposal_id": voter.voted_proposal_id,
            }
            for identity, voter in self._voters.items()
        }

    def register(self, target: str) -> Voter:
        """Create a voter record for target.

        Raises:
            ValueError: If target is blank.
            DuplicateRegistration: If target is already registered.
        """
        identity = canonical_identity(target)
        if identity in self._voters:
            raise DuplicateRegistration(f"Already registered: {identity}")
        voter = Voter(is_registered=True)
        self._voters[identity] = voter
        return voter

    def is_registered(self, identity: str) -> bool:
        voter = self._voters.get(identity.strip())
        return voter is not None and voter.is_registered

    def get(self, identity: str) -> Voter:
        """Return the voter record for identity.

        Unregistered identities read as an empty record, matching the
        default value of an absent entry.
        """
        voter = self._voters.get(identity.strip())
        if voter is None:
            return Voter(is_registered=False)
        return voter

    def require_voter(self, identity: str) -> Voter:
        """Return the registered voter or raise NotAVoter."""
        voter = self._voters.get(identity.strip())
        if voter is None or not voter.is_registered:
            raise NotAVoter("You're not a voter")
        return voter

    def identities(self) -> Iterator[Identity]:
        return iter(list(self._voters))

    @property
    def count(self) -> int:
        return len(self._voters)

    @property
    def voted_count(self) -> int:
        return sum(1 for v in self._voters.values() if v.has_voted)
