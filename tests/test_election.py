"""Tests for the election context — proves check ordering, notifications and atomic rejections."""

from typing import Callable

import pytest

from ballot.engine.election import Election
from ballot.errors import (
    AlreadyVoted,
    DuplicateRegistration,
    EmptyProposal,
    NotAVoter,
    PhaseViolation,
    ProposalNotFound,
    Unauthorized,
    VotingError,
)
from ballot.models.election import WorkflowStatus
from ballot.persistence.event_log import EventKind
from ballot.policy.resolver import VotingPolicy


ADMIN = "0xadmin"
VOTER = "0xvoter1"
OUTSIDER = "0xoutsider"

TRANSITIONS = [
    "start_proposals_registering",
    "end_proposals_registering",
    "start_voting_session",
    "end_voting_session",
    "tally_votes",
]


@pytest.fixture
def election() -> Election:
    return Election(ADMIN)


def _advance_to(election: Election, status: WorkflowStatus) -> None:
    for name in TRANSITIONS[int(election.status):int(status)]:
        getattr(election, name)(ADMIN)
    assert election.status == status


def _voting_open(election: Election, *descriptions: str) -> None:
    election.add_voter(ADMIN, VOTER)
    election.start_proposals_registering(ADMIN)
    for d in descriptions:
        election.add_proposal(VOTER, d)
    election.end_proposals_registering(ADMIN)
    election.start_voting_session(ADMIN)


class TestAddVoter:
    def test_rejects_non_admin(self, election: Election) -> None:
        with pytest.raises(Unauthorized):
            election.add_voter(VOTER, VOTER)

    def test_rejects_outside_registration(self, election: Election) -> None:
        election.start_proposals_registering(ADMIN)
        with pytest.raises(PhaseViolation) as exc:
            election.add_voter(ADMIN, VOTER)
        assert exc.value.expected == WorkflowStatus.REGISTERING_VOTERS

    def test_rejects_duplicate(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        with pytest.raises(DuplicateRegistration):
            election.add_voter(ADMIN, VOTER)

    def test_registers_and_notifies(self, election: Election) -> None:
        notifications = election.add_voter(ADMIN, VOTER)
        assert election.get_voter(VOTER, VOTER).is_registered is True
        assert len(notifications) == 1
        assert notifications[0].kind == EventKind.VOTER_REGISTERED
        assert notifications[0].payload == {"voterAddress": VOTER}

    def test_unauthorized_wins_over_phase(self, election: Election) -> None:
        _advance_to(election, WorkflowStatus.VOTING_SESSION_STARTED)
        with pytest.raises(Unauthorized):
            election.add_voter(OUTSIDER, VOTER)


class TestAddProposal:
    def test_rejects_non_voter(self, election: Election) -> None:
        election.start_proposals_registering(ADMIN)
        with pytest.raises(NotAVoter):
            election.add_proposal(VOTER, "test description")

    def test_admin_is_not_a_voter(self, election: Election) -> None:
        election.start_proposals_registering(ADMIN)
        with pytest.raises(NotAVoter):
            election.add_proposal(ADMIN, "test description")

    def test_rejects_empty(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        election.start_proposals_registering(ADMIN)
        with pytest.raises(EmptyProposal):
            election.add_proposal(VOTER, "")
        with pytest.raises(EmptyProposal):
            election.add_proposal(VOTER, "   ")
        assert election.proposals.count == 0

    def test_rejects_wrong_phase(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        with pytest.raises(PhaseViolation):
            election.add_proposal(VOTER, "too early")

    def test_phase_checked_before_description(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        with pytest.raises(PhaseViolation):
            election.add_proposal(VOTER, "")

    def test_registers_and_notifies(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        election.start_proposals_registering(ADMIN)
        notifications = election.add_proposal(VOTER, "test description")
        assert notifications[0].kind == EventKind.PROPOSAL_REGISTERED
        assert notifications[0].payload == {"proposalId": 0}


class TestSetVote:
    def test_rejects_non_voter(self, election: Election) -> None:
        with pytest.raises(NotAVoter):
            election.set_vote(VOTER, 0)

    def test_rejects_wrong_phase(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        with pytest.raises(PhaseViolation):
            election.set_vote(VOTER, 0)

    def test_rejects_second_vote(self, election: Election) -> None:
        _voting_open(election, "proposition 1")
        election.set_vote(VOTER, 0)
        with pytest.raises(AlreadyVoted):
            election.set_vote(VOTER, 0)
        assert election.get_one_proposal(VOTER, 0).vote_count == 1

    def test_rejects_unknown_proposal(self, election: Election) -> None:
        _voting_open(election)
        with pytest.raises(ProposalNotFound):
            election.set_vote(VOTER, 2)
        assert election.get_voter(VOTER, VOTER).has_voted is False

    def test_increments_and_notifies(self, election: Election) -> None:
        _voting_open(election, "proposition 1")
        before = election.get_one_proposal(ADMIN, 0).vote_count
        notifications = election.set_vote(VOTER, 0)
        assert election.get_one_proposal(ADMIN, 0).vote_count == before + 1
        assert notifications[0].kind == EventKind.VOTED
        assert notifications[0].payload == {"voter": VOTER, "proposalId": 0}


class TestTransitions:
    @pytest.mark.parametrize("name", TRANSITIONS)
    @pytest.mark.parametrize("status", list(WorkflowStatus))
    def test_non_admin_always_unauthorized(
        self, name: str, status: WorkflowStatus,
    ) -> None:
        election = Election(ADMIN)
        _advance_to(election, status)
        with pytest.raises(Unauthorized):
            getattr(election, name)(VOTER)
        assert election.status == status

    @pytest.mark.parametrize("index,name", list(enumerate(TRANSITIONS)))
    def test_wrong_phase_rejected_and_state_unchanged(
        self, index: int, name: str,
    ) -> None:
        for status in WorkflowStatus:
            if int(status) == index:
                continue
            election = Election(ADMIN)
            _advance_to(election, status)
            with pytest.raises(PhaseViolation) as exc:
                getattr(election, name)(ADMIN)
            assert exc.value.expected == WorkflowStatus(index)
            assert election.status == status

    def test_each_transition_notifies_adjacent_ordinals(self, election: Election) -> None:
        for index, name in enumerate(TRANSITIONS):
            (notification,) = getattr(election, name)(ADMIN)
            assert notification.kind == EventKind.WORKFLOW_STATUS_CHANGE
            assert notification.payload == {
                "previousStatus": index, "newStatus": index + 1,
            }

    def test_new_status_is_next_precondition(self, election: Election) -> None:
        for name, required in zip(TRANSITIONS, WorkflowStatus):
            assert election.status == required
            (notification,) = getattr(election, name)(ADMIN)
            assert notification.payload["previousStatus"] == int(required)
            assert int(election.status) == notification.payload["newStatus"]

    def test_calling_twice_fails(self, election: Election) -> None:
        election.start_proposals_registering(ADMIN)
        with pytest.raises(PhaseViolation):
            election.start_proposals_registering(ADMIN)

    def test_tally_message(self, election: Election) -> None:
        with pytest.raises(PhaseViolation, match="voting session ended"):
            election.tally_votes(ADMIN)


class TestWinner:
    def test_end_to_end(self, election: Election) -> None:
        _voting_open(election, "proposition 1")
        election.set_vote(VOTER, 0)
        election.end_voting_session(ADMIN)
        (notification,) = election.tally_votes(ADMIN)
        assert notification.payload == {"previousStatus": 4, "newStatus": 5}
        winner = election.get_winner(ADMIN)
        assert winner.description == "proposition 1"
        assert winner.vote_count == 1
        assert election.verify() == []

    def test_tie_goes_to_lowest_index(self) -> None:
        election = Election(ADMIN)
        voters = [f"0xv{i}" for i in range(6)]
        for v in voters:
            election.add_voter(ADMIN, v)
        election.start_proposals_registering(ADMIN)
        for d in ("A", "B", "C"):
            election.add_proposal(voters[0], d)
        election.end_proposals_registering(ADMIN)
        election.start_voting_session(ADMIN)
        for v, target in zip(voters, [1, 2, 1, 2, 1, 2]):
            election.set_vote(v, target)
        election.end_voting_session(ADMIN)
        election.tally_votes(ADMIN)
        assert election.winning_proposal_id == 1
        assert election.get_winner(ADMIN).description == "B"

    def test_winner_before_tally_rejected(self, election: Election) -> None:
        with pytest.raises(PhaseViolation):
            election.get_winner(ADMIN)

    def test_tally_without_proposals(self, election: Election) -> None:
        _advance_to(election, WorkflowStatus.VOTES_TALLIED)
        assert election.winning_proposal_id is None
        with pytest.raises(ProposalNotFound):
            election.get_winner(ADMIN)


class TestReadAccess:
    def test_outsider_cannot_read_when_restricted(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        with pytest.raises(NotAVoter):
            election.get_voter(OUTSIDER, VOTER)

    def test_admin_and_voter_can_read(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        assert election.get_voter(ADMIN, VOTER).is_registered
        assert election.get_voter(VOTER, VOTER).is_registered

    def test_permissive_policy(self) -> None:
        election = Election(ADMIN, VotingPolicy(restrict_reads=False))
        election.add_voter(ADMIN, VOTER)
        assert election.get_voter(OUTSIDER, VOTER).is_registered

    def test_reads_return_copies(self, election: Election) -> None:
        election.add_voter(ADMIN, VOTER)
        voter = election.get_voter(ADMIN, VOTER)
        voter.has_voted = True
        assert election.get_voter(ADMIN, VOTER).has_voted is False


class TestGenesisProposal:
    def test_placeholder_reserved_at_index_zero(self) -> None:
        election = Election(ADMIN, VotingPolicy(reserve_genesis_proposal=True))
        election.add_voter(ADMIN, VOTER)
        election.start_proposals_registering(ADMIN)
        assert election.get_one_proposal(ADMIN, 0).description == "GENESIS"
        (notification,) = election.add_proposal(VOTER, "proposition 1")
        assert notification.payload == {"proposalId": 1}


class TestRecord:
    def test_round_trip_preserves_election(self, election: Election) -> None:
        _voting_open(election, "A", "B")
        election.set_vote(VOTER, 1)
        restored = Election.from_record(election.to_record())
        assert restored.status == WorkflowStatus.VOTING_SESSION_STARTED
        assert restored.get_voter(ADMIN, VOTER).voted_proposal_id == 1
        assert restored.get_one_proposal(ADMIN, 1).vote_count == 1
        with pytest.raises(AlreadyVoted):
            restored.set_vote(VOTER, 0)
        assert restored.verify() == []

    def test_recorded_genesis_setting_wins(self) -> None:
        election = Election(ADMIN, VotingPolicy(reserve_genesis_proposal=True))
        record = election.to_record()
        assert record["reserve_genesis_proposal"] is True
        restored = Election.from_record(record, VotingPolicy(restrict_reads=False))
        assert restored.policy.reserve_genesis_proposal is True
        assert restored.policy.restrict_reads is False


@pytest.mark.parametrize(
    "operation",
    [
        lambda e: e.add_voter(ADMIN, VOTER),
        lambda e: e.add_proposal(VOTER, "late"),
        lambda e: e.set_vote(VOTER, 5),
        lambda e: e.start_voting_session(ADMIN),
    ],
)
def test_rejections_leave_record_unchanged(operation: Callable[[Election], object]) -> None:
    election = Election(ADMIN)
    _voting_open(election, "A")
    before = election.to_record()
    with pytest.raises(VotingError):
        operation(election)
    assert election.to_record() == before
