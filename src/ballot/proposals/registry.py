"""Proposal registry — append-only, index-addressed candidate options.

Proposals are identified by their 0-based insertion index. Nothing is
ever removed or reordered, so an index handed out once stays valid for
the rest of the election.
"""

from __future__ import annotations

from typing import Any

from ballot.errors import EmptyProposal, ProposalNotFound
from ballot.models.election import Proposal


class ProposalRegistry:
    """Ordered collection of proposals."""

    def __init__(self) -> None:
        self._proposals: list[Proposal] = []

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> ProposalRegistry:
        registry = cls()
        for data in records:
            registry._proposals.append(Proposal(
                description=data["description"],
                vote_count=int(data.get("vote_count", 0)),
            ))
        return registry

    def to_records(self) -> list[dict[str, Any]]:
        return [
            {"description": p.description, "vote_count": p.vote_count}
            for p in self._proposals
        ]

    def submit(self, description: str) -> int:
        """Append a proposal and return its index.

        Raises:
            EmptyProposal: If description is empty or whitespace only.
        """
        if not description or not description.strip():
            raise EmptyProposal("Proposal description cannot be empty")
        self._proposals.append(Proposal(description=description.strip()))
        return len(self._proposals) - 1

    def get(self, proposal_id: int) -> Proposal:
        """Return the proposal at proposal_id. Raises ProposalNotFound."""
        if not self.exists(proposal_id):
            raise ProposalNotFound(f"Proposal not found: {proposal_id}")
        return self._proposals[proposal_id]

    def exists(self, proposal_id: int) -> bool:
        return (
            isinstance(proposal_id, int)
            and not isinstance(proposal_id, bool)
            and 0 <= proposal_id < len(self._proposals)
        )

    def proposals(self) -> list[Proposal]:
        """Snapshot of all proposals in index order."""
        return list(self._proposals)

    @property
    def count(self) -> int:
        return len(self._proposals)

    @property
    def total_votes(self) -> int:
        return sum(p.vote_count for p in self._proposals)
