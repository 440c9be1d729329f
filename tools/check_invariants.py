#!/usr/bin/env python3
"""Ballot invariant checks against the policy config and an event log.

Usage:
    tools/check_invariants.py [data_dir]
"""

import sys
from pathlib import Path

from ballot.engine.invariants import check_events
from ballot.persistence.event_log import EventLog
from ballot.persistence.state_store import StateStore
from ballot.policy.resolver import PolicyResolver


ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = ROOT / "config"
DATA_DIR = ROOT / "data"


def check(data_dir: Path = DATA_DIR) -> int:
    errors: list[str] = []

    # --- Policy invariants ---
    try:
        policy = PolicyResolver.from_config_dir(CONFIG_DIR).voting_policy()
    except ValueError as e:
        print(f"FAIL: {e}")
        return 1

    # --- Event log invariants ---
    events_path = data_dir / "events.jsonl"
    events = []
    if events_path.exists():
        try:
            events = EventLog(storage_path=events_path).events()
        except ValueError as e:
            errors.append(str(e))

    # Proposal ids follow the genesis setting the election ran under
    reserve_genesis = policy.reserve_genesis_proposal
    try:
        snapshot = StateStore(data_dir / "state.json").load_election()
    except ValueError as e:
        errors.append(str(e))
        snapshot = None
    if snapshot is not None:
        reserve_genesis = snapshot.election.get("reserve_genesis_proposal", reserve_genesis)
        if snapshot.event_count != len(events):
            errors.append(
                f"state snapshot covers {snapshot.event_count} events, "
                f"log holds {len(events)}"
            )
    errors.extend(check_events(events, reserve_genesis))

    if errors:
        for error in errors:
            print(f"FAIL: {error}")
        return 1
    print(f"OK: policy valid, {len(events)} events checked")
    return 0


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else DATA_DIR
    raise SystemExit(check(target))
