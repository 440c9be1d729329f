"""Core data models for the voting workflow."""

from ballot.models.election import (
    Identity,
    Proposal,
    Voter,
    WorkflowStatus,
    canonical_identity,
)

__all__ = [
    "Identity",
    "Proposal",
    "Voter",
    "WorkflowStatus",
    "canonical_identity",
]
