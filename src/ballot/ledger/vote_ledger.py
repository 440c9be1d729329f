"""Vote ledger — write-once record of who voted for what.

Casting a vote is the one operation that mutates two aggregates at
once: the voter record (has_voted, voted_proposal_id) and the target
proposal (vote_count). Every check runs before either is touched, so a
rejected vote leaves both unchanged.

The ordered ballot list is kept for audit: the sum of all proposal
vote counts must always equal the number of ballots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ballot.errors import AlreadyVoted
from ballot.models.election import Identity, canonical_identity
from ballot.proposals.registry import ProposalRegistry
from ballot.roster.voter_registry import VoterRegistry


@dataclass(frozen=True)
class Ballot:
    """A cast vote."""
    voter: Identity
    proposal_id: int


class VoteLedger:
    """Applies votes against the voter and proposal registries.

    Usage:
        ledger = VoteLedger(voters, proposals)
        ledger.cast_vote("0xabc", 0)
        assert ledger.verify() == []
    """

    def __init__(self, voters: VoterRegistry, proposals: ProposalRegistry) -> None:
        self._voters = voters
        self._proposals = proposals
        self._ballots: list[Ballot] = []

    @classmethod
    def from_records(
        cls,
        voters: VoterRegistry,
        proposals: ProposalRegistry,
        records: list[dict[str, Any]],
    ) -> VoteLedger:
        ledger = cls(voters, proposals)
        for data in records:
            ledger._ballots.append(Ballot(
                voter=canonical_identity(data["voter"]),
                proposal_id=int(data["proposal_id"]),
            ))
        return ledger

    def to_records(self) -> list[dict[str, Any]]:
        return [
            {"voter": b.voter, "proposal_id": b.proposal_id}
            for b in self._ballots
        ]

    def cast_vote(self, caller: str, proposal_id: int) -> Ballot:
        """Record caller's vote for proposal_id.

        The caller must already be a registered voter; the election
        context checks registration and phase first.

        Raises:
            NotAVoter: If caller is not registered.
            AlreadyVoted: If caller has voted before.
            ProposalNotFound: If proposal_id is out of range.
        """
        voter = self._voters.require_voter(caller)
        if voter.has_voted:
            raise AlreadyVoted("You have already voted")
        proposal = self._proposals.get(proposal_id)

        ballot = Ballot(voter=canonical_identity(caller), proposal_id=proposal_id)
        voter.has_voted = True
        voter.voted_proposal_id = proposal_id
        proposal.vote_count += 1
        self._ballots.append(ballot)
        return ballot

    def ballots(self) -> list[Ballot]:
        return list(self._ballots)

    def verify(self) -> list[str]:
        """Check ledger consistency. Returns violations (empty = OK)."""
        errors: list[str] = []
        if self._proposals.total_votes != len(self._ballots):
            errors.append(
                f"Vote count total ({self._proposals.total_votes}) != "
                f"ballots cast ({len(self._ballots)})"
            )
        if self._voters.voted_count != len(self._ballots):
            errors.append(
                f"Voters marked as voted ({self._voters.voted_count}) != "
                f"ballots cast ({len(self._ballots)})"
            )
        seen: set[str] = set()
        for ballot in self._ballots:
            if ballot.voter in seen:
                errors.append(f"Voter {ballot.voter} has more than one ballot")
            seen.add(ballot.voter)
            voter = self._voters.get(ballot.voter)
            if voter.voted_proposal_id != ballot.proposal_id:
                errors.append(
                    f"Voter {ballot.voter} record points at "
                    f"{voter.voted_proposal_id}, ballot at {ballot.proposal_id}"
                )
        return errors
