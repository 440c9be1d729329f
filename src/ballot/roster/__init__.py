"""Voter roster."""

from ballot.roster.voter_registry import VoterRegistry

__all__ = ["VoterRegistry"]
