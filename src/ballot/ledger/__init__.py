"""Vote ledger."""

from ballot.ledger.vote_ledger import Ballot, VoteLedger

__all__ = ["Ballot", "VoteLedger"]
