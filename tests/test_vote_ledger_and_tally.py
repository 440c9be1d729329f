"""Tests for the vote ledger and tally engine — proves write-once votes and deterministic winners."""

import pytest

from ballot.engine.tally import TallyEngine
from ballot.errors import AlreadyVoted, NotAVoter, ProposalNotFound
from ballot.ledger.vote_ledger import Ballot, VoteLedger
from ballot.models.election import Proposal
from ballot.proposals.registry import ProposalRegistry
from ballot.roster.voter_registry import VoterRegistry


@pytest.fixture
def voters() -> VoterRegistry:
    registry = VoterRegistry()
    for name in ("0xalice", "0xbob", "0xcarol"):
        registry.register(name)
    return registry


@pytest.fixture
def proposals() -> ProposalRegistry:
    registry = ProposalRegistry()
    registry.submit("A")
    registry.submit("B")
    return registry


@pytest.fixture
def ledger(voters: VoterRegistry, proposals: ProposalRegistry) -> VoteLedger:
    return VoteLedger(voters, proposals)


class TestCastVote:
    def test_vote_updates_voter_and_proposal(
        self, ledger: VoteLedger, voters: VoterRegistry, proposals: ProposalRegistry,
    ) -> None:
        ballot = ledger.cast_vote("0xalice", 1)
        assert ballot == Ballot(voter="0xalice", proposal_id=1)
        assert voters.get("0xalice").has_voted is True
        assert voters.get("0xalice").voted_proposal_id == 1
        assert proposals.get(1).vote_count == 1
        assert proposals.get(0).vote_count == 0

    def test_second_vote_rejected_and_nothing_changes(
        self, ledger: VoteLedger, proposals: ProposalRegistry,
    ) -> None:
        ledger.cast_vote("0xalice", 0)
        with pytest.raises(AlreadyVoted):
            ledger.cast_vote("0xalice", 1)
        assert proposals.get(0).vote_count == 1
        assert proposals.get(1).vote_count == 0
        assert len(ledger.ballots()) == 1

    def test_unknown_proposal_leaves_voter_untouched(
        self, ledger: VoteLedger, voters: VoterRegistry,
    ) -> None:
        with pytest.raises(ProposalNotFound):
            ledger.cast_vote("0xbob", 2)
        assert voters.get("0xbob").has_voted is False
        assert ledger.ballots() == []

    def test_unregistered_rejected(self, ledger: VoteLedger) -> None:
        with pytest.raises(NotAVoter):
            ledger.cast_vote("0xmallory", 0)

    def test_already_voted_checked_before_proposal(self, ledger: VoteLedger) -> None:
        ledger.cast_vote("0xalice", 0)
        with pytest.raises(AlreadyVoted):
            ledger.cast_vote("0xalice", 42)


class TestVerify:
    def test_sum_of_counts_equals_ballots(
        self, ledger: VoteLedger, proposals: ProposalRegistry,
    ) -> None:
        ledger.cast_vote("0xalice", 0)
        ledger.cast_vote("0xbob", 1)
        ledger.cast_vote("0xcarol", 1)
        assert proposals.total_votes == 3
        assert ledger.verify() == []

    def test_detects_tampered_count(
        self, ledger: VoteLedger, proposals: ProposalRegistry,
    ) -> None:
        ledger.cast_vote("0xalice", 0)
        proposals.get(1).vote_count += 1
        errors = ledger.verify()
        assert any("Vote count total" in e for e in errors)

    def test_records_round_trip(
        self, ledger: VoteLedger, voters: VoterRegistry, proposals: ProposalRegistry,
    ) -> None:
        ledger.cast_vote("0xcarol", 1)
        restored = VoteLedger.from_records(voters, proposals, ledger.to_records())
        assert restored.ballots() == [Ballot(voter="0xcarol", proposal_id=1)]
        assert restored.verify() == []


def _proposals(*counts: int) -> list[Proposal]:
    return [Proposal(description=f"P{i}", vote_count=c) for i, c in enumerate(counts)]


class TestTally:
    def test_tie_breaks_to_lowest_index(self) -> None:
        assert TallyEngine.tally(_proposals(0, 3, 3)) == 1

    def test_strict_maximum_wins(self) -> None:
        assert TallyEngine.tally(_proposals(1, 2, 5, 4)) == 2

    def test_all_zero_selects_first(self) -> None:
        assert TallyEngine.tally(_proposals(0, 0, 0)) == 0

    def test_single_proposal(self) -> None:
        assert TallyEngine.tally(_proposals(1)) == 0

    def test_no_proposals(self) -> None:
        assert TallyEngine.tally([]) is None

    def test_deterministic(self) -> None:
        proposals = _proposals(2, 7, 7, 1, 7)
        assert {TallyEngine.tally(proposals) for _ in range(10)} == {1}
