"""Tally engine — deterministic winner selection.

Linear scan in index order keeping the highest vote count seen so far.
Only a strictly greater count replaces the current leader, so among
proposals tied for the maximum the lowest index wins. No randomness.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ballot.models.election import Proposal


class TallyEngine:
    """Computes the winning proposal index."""

    @staticmethod
    def tally(proposals: Sequence[Proposal]) -> Optional[int]:
        """Return the index of the winning proposal, or None if there are none."""
        winner: Optional[int] = None
        best = -1
        for index, proposal in enumerate(proposals):
            if proposal.vote_count > best:
                best = proposal.vote_count
                winner = index
        return winner
