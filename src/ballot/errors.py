"""Rejection reasons for voting operations.

Every rejection is terminal for the call that caused it and leaves
the election untouched. Each class carries a stable ``code`` so that
callers can match on the reason without parsing messages.
"""

from __future__ import annotations

from typing import Optional

from ballot.models.election import WorkflowStatus


class VotingError(Exception):
    """Base class for all rejected voting operations."""
    code = "VOTING_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(VotingError):
    """Caller is not the administrator."""
    code = "UNAUTHORIZED"


class PhaseViolation(VotingError):
    """Operation is not valid in the current workflow phase."""
    code = "PHASE_VIOLATION"

    def __init__(
        self,
        message: str,
        expected: WorkflowStatus,
        current: Optional[WorkflowStatus] = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.current = current


class DuplicateRegistration(VotingError):
    code = "DUPLICATE_REGISTRATION"


class NotAVoter(VotingError):
    code = "NOT_A_VOTER"


class EmptyProposal(VotingError):
    code = "EMPTY_PROPOSAL"


class AlreadyVoted(VotingError):
    code = "ALREADY_VOTED"


class ProposalNotFound(VotingError):
    code = "PROPOSAL_NOT_FOUND"
