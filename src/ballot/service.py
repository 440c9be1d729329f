"""Voting service — unified facade for the election engine.

This is the primary interface for programmatic access. It:
- serialises every operation under one lock (single writer at a time),
- converts rejections into typed results with stable codes,
- records each notification in the append-only event log,
- persists a snapshot of the election after each mutation.

Audit events are never silently dropped. If the event log cannot
record a notification, the operation is rolled back and reported as
failed, so the election never holds a change the log does not show.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Optional

import structlog

from ballot.engine.election import Election, Notification
from ballot.engine.invariants import check_events
from ballot.errors import VotingError
from ballot.persistence.event_log import EventLog, EventRecord
from ballot.persistence.state_store import StateStore
from ballot.policy.resolver import PolicyResolver

log = structlog.get_logger(__name__)

VERSION = "0.1.0"


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation.

    On failure, ``code`` holds the stable rejection code and ``errors``
    the human-readable reason.
    """
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    code: Optional[str] = None
    events: list[EventRecord] = field(default_factory=list)


class VotingService:
    """Election facade.

    Usage:
        service = VotingService("0xadmin")
        service.register_voter("0xadmin", "0xvoter")
        service.start_proposals_registering("0xadmin")
        result = service.submit_proposal("0xvoter", "proposition 1")
        proposal_id = result.data["proposal_id"]
        ...
        service.tally_votes("0xadmin")
        winner = service.get_winner("0xadmin").data["proposal"]

    Persistence (optional):
        service = VotingService(
            "0xadmin",
            event_log=EventLog(data_dir / "events.jsonl"),
            state_store=StateStore(data_dir / "state.json"),
        )
        # The election is loaded from the store on construction.
    """

    def __init__(
        self,
        administrator: Optional[str] = None,
        resolver: Optional[PolicyResolver] = None,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._resolver = resolver or PolicyResolver.default()
        self._event_log = event_log if event_log is not None else EventLog()
        self._state_store = state_store
        self._lock = threading.RLock()

        policy = self._resolver.voting_policy()
        snapshot = state_store.load_election() if state_store is not None else None
        if snapshot is not None:
            stored = snapshot.election
            if administrator is not None and administrator.strip() != stored["administrator"]:
                raise ValueError(
                    f"Stored election is administered by {stored['administrator']}, "
                    f"not {administrator.strip()}"
                )
            # Fail closed: a stale snapshot would replay already-closed phases
            if snapshot.event_count != self._event_log.count:
                raise ValueError(
                    f"State snapshot covers {snapshot.event_count} events but the "
                    f"event log holds {self._event_log.count}; refusing to resume"
                )
            self._election = Election.from_record(stored, policy)
        elif administrator is not None:
            self._election = Election(administrator, policy)
        else:
            raise ValueError("An administrator is required to start a new election")

        # Initialise from the persisted log to avoid ID collision on restart
        self._event_counter = self._event_log.count
        self._persistence_degraded = False

    # ------------------------------------------------------------------
    # Registration, proposals, votes
    # ------------------------------------------------------------------

    def register_voter(self, caller: str, target: str) -> ServiceResult:
        """Register target as a voter (administrator, RegisteringVoters)."""
        return self._execute(
            "voter_registered",
            lambda: self._election.add_voter(caller, target),
            lambda payload: {"voter": payload["voterAddress"]},
        )

    def submit_proposal(self, caller: str, description: str) -> ServiceResult:
        """Submit a proposal (registered voter, ProposalsRegistrationStarted)."""
        return self._execute(
            "proposal_registered",
            lambda: self._election.add_proposal(caller, description),
            lambda payload: {"proposal_id": payload["proposalId"]},
        )

    def cast_vote(self, caller: str, proposal_id: int) -> ServiceResult:
        """Cast caller's single vote (registered voter, VotingSessionStarted)."""
        return self._execute(
            "vote_cast",
            lambda: self._election.set_vote(caller, proposal_id),
            lambda payload: {
                "voter": payload["voter"], "proposal_id": payload["proposalId"],
            },
        )

    # ------------------------------------------------------------------
    # Workflow transitions
    # ------------------------------------------------------------------

    def start_proposals_registering(self, caller: str) -> ServiceResult:
        return self._transition(caller, self._election_op("start_proposals_registering"))

    def end_proposals_registering(self, caller: str) -> ServiceResult:
        return self._transition(caller, self._election_op("end_proposals_registering"))

    def start_voting_session(self, caller: str) -> ServiceResult:
        return self._transition(caller, self._election_op("start_voting_session"))

    def end_voting_session(self, caller: str) -> ServiceResult:
        return self._transition(caller, self._election_op("end_voting_session"))

    def tally_votes(self, caller: str) -> ServiceResult:
        """Close the election and compute the winner."""
        result = self._transition(caller, self._election_op("tally_votes"))
        if result.success:
            data = dict(result.data)
            data["winning_proposal_id"] = self._election.winning_proposal_id
            return ServiceResult(success=True, data=data, events=result.events)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_voter(self, caller: str, identity: str) -> ServiceResult:
        return self._query(
            lambda: {"voter": asdict(self._election.get_voter(caller, identity))}
        )

    def get_one_proposal(self, caller: str, proposal_id: int) -> ServiceResult:
        return self._query(
            lambda: {
                "proposal_id": proposal_id,
                "proposal": asdict(self._election.get_one_proposal(caller, proposal_id)),
            }
        )

    def get_winner(self, caller: str) -> ServiceResult:
        return self._query(
            lambda: {
                "proposal": asdict(self._election.get_winner(caller)),
                "proposal_id": self._election.winning_proposal_id,
            }
        )

    def events(self) -> list[EventRecord]:
        with self._lock:
            return self._event_log.events()

    def verify(self) -> list[str]:
        """Check election consistency. Returns violations (empty = OK)."""
        with self._lock:
            errors = self._election.verify()
            errors.extend(check_events(
                self._event_log.events(),
                self._election.policy.reserve_genesis_proposal,
            ))
            return errors

    def status(self) -> dict[str, Any]:
        """Return election-wide status summary."""
        with self._lock:
            election = self._election
            return {
                "version": VERSION,
                "administrator": election.administrator,
                "status": election.status.label,
                "status_ordinal": int(election.status),
                "voters": {
                    "registered": election.voters.count,
                    "voted": election.voters.voted_count,
                },
                "proposals": election.proposals.count,
                "votes": election.proposals.total_votes,
                "winning_proposal_id": election.winning_proposal_id,
                "events": self._event_log.count,
                "persistence_degraded": self._persistence_degraded,
            }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _election_op(self, name: str) -> Callable[[str], list[Notification]]:
        # Resolved at call time: rollback may replace self._election.
        return lambda caller: getattr(self._election, name)(caller)

    def _transition(
        self, caller: str, operation: Callable[[str], list[Notification]],
    ) -> ServiceResult:
        return self._execute(
            "workflow_status_changed",
            lambda: operation(caller),
            lambda payload: {
                "previous_status": payload["previousStatus"],
                "new_status": payload["newStatus"],
                "status": self._election.status.label,
            },
        )

    def _execute(
        self,
        action: str,
        operation: Callable[[], list[Notification]],
        describe: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> ServiceResult:
        """Run a mutating operation atomically.

        1. Snapshot the election (for rollback).
        2. Apply the operation; a rejection leaves the election untouched.
        3. Record notifications; on failure restore the snapshot.
        4. Persist the snapshot store (post-audit, never rolls back).
        """
        with self._lock:
            snapshot = copy.deepcopy(self._election)
            try:
                notifications = operation()
            except VotingError as e:
                log.warning("operation_rejected", action=action, code=e.code, reason=e.message)
                return ServiceResult(success=False, errors=[e.message], code=e.code)
            except ValueError as e:
                log.warning("operation_rejected", action=action, code="INVALID_ARGUMENT", reason=str(e))
                return ServiceResult(success=False, errors=[str(e)], code="INVALID_ARGUMENT")

            events, err = self._record_events(notifications)
            if err:
                self._election = snapshot
                log.error("audit_failure", action=action, reason=err)
                return ServiceResult(success=False, errors=[err], code="AUDIT_FAILURE")

            data: dict[str, Any] = {}
            for n in notifications:
                data.update(describe(n.payload))
            warning = self._safe_persist_post_audit()
            if warning:
                data["warning"] = warning
            log.info(action, **data)
            return ServiceResult(success=True, data=data, events=events)

    def _query(self, read: Callable[[], dict[str, Any]]) -> ServiceResult:
        with self._lock:
            try:
                return ServiceResult(success=True, data=read())
            except VotingError as e:
                return ServiceResult(success=False, errors=[e.message], code=e.code)
            except ValueError as e:
                return ServiceResult(success=False, errors=[str(e)], code="INVALID_ARGUMENT")

    def _next_event_id(self) -> str:
        """Generate a monotonically increasing unique event ID."""
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _record_events(
        self, notifications: list[Notification],
    ) -> tuple[list[EventRecord], Optional[str]]:
        """Append notifications to the event log. Returns (events, error)."""
        events: list[EventRecord] = []
        for n in notifications:
            try:
                event = EventRecord.create(
                    event_id=self._next_event_id(),
                    event_kind=n.kind,
                    actor_id=n.actor_id,
                    payload=n.payload,
                )
                self._event_log.append(event)
            except (ValueError, OSError) as e:
                return events, f"Event log failure: {e}"
            events.append(event)
        return events, None

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist state after audit events have been committed.

        MUST NOT roll back in-memory state: the event is already in the
        log. On failure the snapshot is stale; the degraded flag is set
        and a warning returned.
        """
        if self._state_store is None:
            return None
        try:
            self._state_store.save_election(
                self._election.to_record(), self._event_log.count,
            )
            return None
        except OSError as e:
            self._persistence_degraded = True
            log.error("persistence_degraded", reason=str(e))
            return f"Persistence degraded: {e}; event recorded but state snapshot is stale"
