"""Election context — the one explicit state struct of a voting session.

The election owns the administrator, the workflow status, the voter
and proposal registries, the vote ledger and the cached winner. Every
operation receives the caller identity explicitly and is checked in a
fixed order before anything is mutated:

- administrator operations: Unauthorized, then PhaseViolation, then
  argument errors;
- voter operations: NotAVoter, then PhaseViolation, then argument
  errors.

A rejected operation raises a VotingError and leaves the election
exactly as it was. A successful mutating operation returns the
notifications it produced; the service layer records them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional

from ballot.engine.tally import TallyEngine
from ballot.engine.workflow import WorkflowStateMachine
from ballot.errors import NotAVoter, ProposalNotFound
from ballot.governance.access_controller import AccessController
from ballot.ledger.vote_ledger import VoteLedger
from ballot.models.election import (
    Identity,
    Proposal,
    Voter,
    WorkflowStatus,
    canonical_identity,
)
from ballot.persistence.event_log import EventKind
from ballot.policy.resolver import VotingPolicy
from ballot.proposals.registry import ProposalRegistry
from ballot.roster.voter_registry import VoterRegistry


@dataclass(frozen=True)
class Notification:
    """An observable outcome of a successful operation."""
    kind: EventKind
    actor_id: str
    payload: dict[str, Any] = field(default_factory=dict)


class Election:
    """A single-administrator election.

    Usage:
        election = Election("0xadmin")
        election.add_voter("0xadmin", "0xvoter")
        election.start_proposals_registering("0xadmin")
        election.add_proposal("0xvoter", "proposition 1")
        ...
        election.tally_votes("0xadmin")
        winner = election.get_winner("0xadmin")
    """

    def __init__(
        self,
        administrator: str,
        policy: Optional[VotingPolicy] = None,
    ) -> None:
        self._access = AccessController(administrator)
        self._policy = policy or VotingPolicy()
        self._workflow = WorkflowStateMachine()
        self._voters = VoterRegistry()
        self._proposals = ProposalRegistry()
        self._ledger = VoteLedger(self._voters, self._proposals)
        self._winning_proposal_id: Optional[int] = None

    # ------------------------------------------------------------------
    # Persistence records
    # ------------------------------------------------------------------

    @classmethod
    def from_record(
        cls, data: dict[str, Any], policy: Optional[VotingPolicy] = None,
    ) -> Election:
        """Restore an election from a snapshot produced by to_record().

        The genesis setting recorded with the election wins over the
        supplied policy: proposal ids were assigned under it.
        """
        policy = policy or VotingPolicy()
        if "reserve_genesis_proposal" in data:
            policy = dataclasses.replace(
                policy, reserve_genesis_proposal=bool(data["reserve_genesis_proposal"]),
            )
        election = cls(data["administrator"], policy)
        election._workflow = WorkflowStateMachine(WorkflowStatus(data["status"]))
        election._voters = VoterRegistry.from_records(data.get("voters", {}))
        election._proposals = ProposalRegistry.from_records(data.get("proposals", []))
        election._ledger = VoteLedger.from_records(
            election._voters, election._proposals, data.get("ballots", []),
        )
        election._winning_proposal_id = data.get("winning_proposal_id")
        return election

    def to_record(self) -> dict[str, Any]:
        return {
            "administrator": self._access.administrator,
            "status": int(self._workflow.status),
            "voters": self._voters.to_records(),
            "proposals": self._proposals.to_records(),
            "ballots": self._ledger.to_records(),
            "winning_proposal_id": self._winning_proposal_id,
            "reserve_genesis_proposal": self._policy.reserve_genesis_proposal,
        }

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_voter(self, caller: str, target: str) -> list[Notification]:
        self._access.require_admin(caller)
        self._workflow.require(WorkflowStatus.REGISTERING_VOTERS)
        identity = canonical_identity(target)
        self._voters.register(identity)
        return [Notification(
            EventKind.VOTER_REGISTERED, caller.strip(), {"voterAddress": identity},
        )]

    def add_proposal(self, caller: str, description: str) -> list[Notification]:
        self._voters.require_voter(caller)
        self._workflow.require(WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
        proposal_id = self._proposals.submit(description)
        return [Notification(
            EventKind.PROPOSAL_REGISTERED, caller.strip(), {"proposalId": proposal_id},
        )]

    def set_vote(self, caller: str, proposal_id: int) -> list[Notification]:
        self._voters.require_voter(caller)
        self._workflow.require(WorkflowStatus.VOTING_SESSION_STARTED)
        ballot = self._ledger.cast_vote(caller, proposal_id)
        return [Notification(
            EventKind.VOTED,
            ballot.voter,
            {"voter": ballot.voter, "proposalId": ballot.proposal_id},
        )]

    # ------------------------------------------------------------------
    # Workflow transitions (administrator only)
    # ------------------------------------------------------------------

    def start_proposals_registering(self, caller: str) -> list[Notification]:
        self._access.require_admin(caller)
        self._workflow.require(WorkflowStatus.REGISTERING_VOTERS)
        if self._policy.reserve_genesis_proposal:
            self._proposals.submit(self._policy.genesis_description)
        return self._advance(caller, WorkflowStatus.REGISTERING_VOTERS)

    def end_proposals_registering(self, caller: str) -> list[Notification]:
        self._access.require_admin(caller)
        return self._advance(caller, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)

    def start_voting_session(self, caller: str) -> list[Notification]:
        self._access.require_admin(caller)
        return self._advance(caller, WorkflowStatus.PROPOSALS_REGISTRATION_ENDED)

    def end_voting_session(self, caller: str) -> list[Notification]:
        self._access.require_admin(caller)
        return self._advance(caller, WorkflowStatus.VOTING_SESSION_STARTED)

    def tally_votes(self, caller: str) -> list[Notification]:
        self._access.require_admin(caller)
        self._workflow.require(
            WorkflowStatus.VOTING_SESSION_ENDED,
            "Current status is not voting session ended",
        )
        winner = TallyEngine.tally(self._proposals.proposals())
        notifications = self._advance(caller, WorkflowStatus.VOTING_SESSION_ENDED)
        self._winning_proposal_id = winner
        return notifications

    def _advance(self, caller: str, expected: WorkflowStatus) -> list[Notification]:
        previous, new = self._workflow.advance(expected)
        return [Notification(
            EventKind.WORKFLOW_STATUS_CHANGE,
            caller.strip(),
            {"previousStatus": int(previous), "newStatus": int(new)},
        )]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_voter(self, caller: str, identity: str) -> Voter:
        self._require_reader(caller)
        return dataclasses.replace(self._voters.get(identity))

    def get_one_proposal(self, caller: str, proposal_id: int) -> Proposal:
        self._require_reader(caller)
        return dataclasses.replace(self._proposals.get(proposal_id))

    def get_winner(self, caller: str) -> Proposal:
        self._require_reader(caller)
        self._workflow.require(WorkflowStatus.VOTES_TALLIED)
        if self._winning_proposal_id is None:
            raise ProposalNotFound("No proposals were registered")
        return dataclasses.replace(self._proposals.get(self._winning_proposal_id))

    def _require_reader(self, caller: str) -> None:
        if not self._policy.restrict_reads:
            return
        if self._access.is_admin(caller) or self._voters.is_registered(caller):
            return
        raise NotAVoter("You're not a voter")

    @property
    def administrator(self) -> Identity:
        return self._access.administrator

    @property
    def policy(self) -> VotingPolicy:
        return self._policy

    @property
    def status(self) -> WorkflowStatus:
        return self._workflow.status

    @property
    def winning_proposal_id(self) -> Optional[int]:
        return self._winning_proposal_id

    @property
    def voters(self) -> VoterRegistry:
        return self._voters

    @property
    def proposals(self) -> ProposalRegistry:
        return self._proposals

    @property
    def ledger(self) -> VoteLedger:
        return self._ledger

    def verify(self) -> list[str]:
        """Check cross-component consistency. Returns violations."""
        errors = self._ledger.verify()
        tallied = self._workflow.status == WorkflowStatus.VOTES_TALLIED
        if not tallied and self._winning_proposal_id is not None:
            errors.append("Winner recorded before votes were tallied")
        if tallied and self._winning_proposal_id != TallyEngine.tally(
            self._proposals.proposals()
        ):
            errors.append("Recorded winner does not match the tally")
        return errors
