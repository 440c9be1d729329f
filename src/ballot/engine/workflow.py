"""Workflow state machine — the single gate for every mutating operation.

Election lifecycle:
    RegisteringVoters → ProposalsRegistrationStarted → ProposalsRegistrationEnded
    → VotingSessionStarted → VotingSessionEnded → VotesTallied

Fail-closed: only the five adjacent forward transitions exist. There
is no skip, no regression and no recovery path. A rejected transition
leaves the current status unchanged.
"""

from __future__ import annotations

from ballot.errors import PhaseViolation
from ballot.models.election import WorkflowStatus


# Legal transitions: (from_status, to_status)
_TRANSITIONS: frozenset[tuple[WorkflowStatus, WorkflowStatus]] = frozenset({
    (WorkflowStatus.REGISTERING_VOTERS, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED),
    (WorkflowStatus.PROPOSALS_REGISTRATION_STARTED, WorkflowStatus.PROPOSALS_REGISTRATION_ENDED),
    (WorkflowStatus.PROPOSALS_REGISTRATION_ENDED, WorkflowStatus.VOTING_SESSION_STARTED),
    (WorkflowStatus.VOTING_SESSION_STARTED, WorkflowStatus.VOTING_SESSION_ENDED),
    (WorkflowStatus.VOTING_SESSION_ENDED, WorkflowStatus.VOTES_TALLIED),
})

# Rejection reasons, keyed by the status an operation requires.
PHASE_REASONS: dict[WorkflowStatus, str] = {
    WorkflowStatus.REGISTERING_VOTERS: "Voters registration is not open",
    WorkflowStatus.PROPOSALS_REGISTRATION_STARTED: "Proposals registration has not started",
    WorkflowStatus.PROPOSALS_REGISTRATION_ENDED: "Proposals registration is not finished",
    WorkflowStatus.VOTING_SESSION_STARTED: "Voting session has not started",
    WorkflowStatus.VOTING_SESSION_ENDED: "Voting session has not ended",
    WorkflowStatus.VOTES_TALLIED: "Votes have not been tallied",
}


class WorkflowStateMachine:
    """Holds the current workflow status and enforces forward-only moves."""

    def __init__(
        self, status: WorkflowStatus = WorkflowStatus.REGISTERING_VOTERS,
    ) -> None:
        self._status = status

    @property
    def status(self) -> WorkflowStatus:
        return self._status

    def require(self, expected: WorkflowStatus, reason: str | None = None) -> None:
        """Raise PhaseViolation unless the current status is expected."""
        if self._status != expected:
            message = reason or PHASE_REASONS[expected]
            raise PhaseViolation(
                f"{message} (requires {expected.label}, "
                f"current {self._status.label})",
                expected=expected,
                current=self._status,
            )

    def advance(
        self, expected: WorkflowStatus,
    ) -> tuple[WorkflowStatus, WorkflowStatus]:
        """Move one step forward from expected.

        Returns (previous, new). Raises PhaseViolation if the current
        status is not expected.
        """
        self.require(expected)
        targets = self.valid_transitions(self._status)
        if len(targets) != 1:
            raise PhaseViolation(
                f"No transition out of {self._status.label}",
                expected=expected,
                current=self._status,
            )
        (target,) = targets
        previous = self._status
        self._status = target
        return previous, target

    @staticmethod
    def is_terminal(status: WorkflowStatus) -> bool:
        return status == WorkflowStatus.VOTES_TALLIED

    @staticmethod
    def valid_transitions(status: WorkflowStatus) -> set[WorkflowStatus]:
        """Return the set of statuses reachable in one step from status."""
        return {to for (frm, to) in _TRANSITIONS if frm == status}
