"""Proposal registry."""

from ballot.proposals.registry import ProposalRegistry

__all__ = ["ProposalRegistry"]
