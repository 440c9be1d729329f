"""Event-log invariant checks.

Replays an election's notification stream and checks that it could
only have been produced by a correct workflow:
- status changes move forward exactly one step, starting at 0,
  and each change starts where the previous one ended;
- voters are registered once, only while registration is open;
- proposal ids are consecutive and only appear while proposal
  registration is open;
- each registered voter votes at most once, for an existing proposal,
  only while the voting session is open.
"""

from __future__ import annotations

from typing import Iterable

from ballot.models.election import WorkflowStatus
from ballot.persistence.event_log import EventKind, EventRecord


def check_events(
    events: Iterable[EventRecord], reserve_genesis_proposal: bool = False,
) -> list[str]:
    """Return invariant violations found in events (empty = OK)."""
    errors: list[str] = []
    status = WorkflowStatus.REGISTERING_VOTERS
    voters: set[str] = set()
    voted: set[str] = set()
    proposal_count = 0

    for event in events:
        payload = event.payload
        where = f"{event.event_id} ({event.event_kind.value})"

        if event.event_kind == EventKind.WORKFLOW_STATUS_CHANGE:
            previous, new = payload.get("previousStatus"), payload.get("newStatus")
            if previous != int(status):
                errors.append(f"{where}: previousStatus {previous} != current {int(status)}")
            if not isinstance(new, int) or new != int(status) + 1 or new > 5:
                errors.append(f"{where}: newStatus {new} is not one step after {int(status)}")
                continue
            status = WorkflowStatus(new)
            if status == WorkflowStatus.PROPOSALS_REGISTRATION_STARTED and reserve_genesis_proposal:
                proposal_count = 1

        elif event.event_kind == EventKind.VOTER_REGISTERED:
            address = payload.get("voterAddress")
            if status != WorkflowStatus.REGISTERING_VOTERS:
                errors.append(f"{where}: voter registered during {status.label}")
            if address in voters:
                errors.append(f"{where}: {address} registered twice")
            voters.add(address)

        elif event.event_kind == EventKind.PROPOSAL_REGISTERED:
            proposal_id = payload.get("proposalId")
            if status != WorkflowStatus.PROPOSALS_REGISTRATION_STARTED:
                errors.append(f"{where}: proposal registered during {status.label}")
            if proposal_id != proposal_count:
                errors.append(f"{where}: proposalId {proposal_id}, expected {proposal_count}")
            proposal_count += 1

        elif event.event_kind == EventKind.VOTED:
            voter, proposal_id = payload.get("voter"), payload.get("proposalId")
            if status != WorkflowStatus.VOTING_SESSION_STARTED:
                errors.append(f"{where}: vote cast during {status.label}")
            if voter not in voters:
                errors.append(f"{where}: {voter} voted without being registered")
            if voter in voted:
                errors.append(f"{where}: {voter} voted twice")
            if not isinstance(proposal_id, int) or not 0 <= proposal_id < proposal_count:
                errors.append(f"{where}: vote for unknown proposal {proposal_id}")
            voted.add(voter)

    return errors
