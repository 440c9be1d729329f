"""Ballot CLI — command-line interface for the election engine.

The election is kept in a data directory (events.jsonl + state.json)
so that successive invocations drive the same election.

Usage:
    ballot --admin 0xadmin add-voter --voter 0xalice
    ballot start-proposals
    ballot add-proposal --caller 0xalice --description "proposition 1"
    ballot end-proposals
    ballot start-voting
    ballot vote --caller 0xalice --proposal-id 0
    ballot end-voting
    ballot tally
    ballot winner
    ballot check-invariants

--caller defaults to the administrator. Environment variables (also
read from a .env file): BALLOT_ADMIN, BALLOT_DATA_DIR, LOG_LEVEL,
BALLOT_LOG_FORMAT (production | development).
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Callable

from dotenv import load_dotenv

from ballot.observability import configure_structlog
from ballot.persistence.event_log import EventLog
from ballot.persistence.state_store import StateStore
from ballot.policy.resolver import PolicyResolver
from ballot.service import ServiceResult, VotingService


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"
DEFAULT_DATA = Path(__file__).resolve().parents[2] / "data"


def _make_service(args: argparse.Namespace) -> VotingService:
    """Create a VotingService with durable persistence."""
    data_dir: Path = args.data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    return VotingService(
        administrator=args.admin,
        resolver=PolicyResolver.from_config_dir(args.config),
        event_log=EventLog(storage_path=data_dir / "events.jsonl"),
        state_store=StateStore(storage_path=data_dir / "state.json"),
    )


def _caller(args: argparse.Namespace, service: VotingService) -> str:
    return args.caller or service.status()["administrator"]


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, sort_keys=True))
        return 0
    print(f"{result.code}: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_status(args: argparse.Namespace, service: VotingService) -> int:
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_add_voter(args: argparse.Namespace, service: VotingService) -> int:
    return _report(service.register_voter(_caller(args, service), args.voter))


def cmd_add_proposal(args: argparse.Namespace, service: VotingService) -> int:
    return _report(service.submit_proposal(_caller(args, service), args.description))


def cmd_vote(args: argparse.Namespace, service: VotingService) -> int:
    return _report(service.cast_vote(_caller(args, service), args.proposal_id))


def _transition_command(name: str) -> Callable[[argparse.Namespace, VotingService], int]:
    def handler(args: argparse.Namespace, service: VotingService) -> int:
        return _report(getattr(service, name)(_caller(args, service)))
    return handler


def cmd_get_voter(args: argparse.Namespace, service: VotingService) -> int:
    return _report(service.get_voter(_caller(args, service), args.voter))


def cmd_get_proposal(args: argparse.Namespace, service: VotingService) -> int:
    return _report(service.get_one_proposal(_caller(args, service), args.proposal_id))


def cmd_winner(args: argparse.Namespace, service: VotingService) -> int:
    return _report(service.get_winner(_caller(args, service)))


def cmd_check_invariants(args: argparse.Namespace, service: VotingService) -> int:
    """Check the election state and its event log."""
    errors = service.verify()
    if errors:
        for error in errors:
            print(f"FAIL: {error}", file=sys.stderr)
        return 1
    print(f"OK: {len(service.events())} events checked")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ballot",
        description="Ballot — governed voting workflow CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path(os.getenv("BALLOT_DATA_DIR", str(DEFAULT_DATA))),
        help="Directory holding events.jsonl and state.json",
    )
    parser.add_argument(
        "--admin",
        default=os.getenv("BALLOT_ADMIN"),
        help="Administrator identity (required to start a new election)",
    )
    sub = parser.add_subparsers(dest="command")

    def command(name: str, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--caller", help="Caller identity (default: administrator)")
        return p

    sub.add_parser("status", help="Show election status")

    p_voter = command("add-voter", "Register a voter")
    p_voter.add_argument("--voter", required=True, help="Voter identity")

    p_prop = command("add-proposal", "Submit a proposal")
    p_prop.add_argument("--description", required=True, help="Proposal text")

    p_vote = command("vote", "Cast a vote")
    p_vote.add_argument("--proposal-id", type=int, required=True, help="Proposal index")

    command("start-proposals", "Open proposal registration")
    command("end-proposals", "Close proposal registration")
    command("start-voting", "Open the voting session")
    command("end-voting", "Close the voting session")
    command("tally", "Tally votes and select the winner")

    p_get_voter = command("get-voter", "Show a voter record")
    p_get_voter.add_argument("--voter", required=True, help="Voter identity")

    p_get_prop = command("get-proposal", "Show a proposal")
    p_get_prop.add_argument("--proposal-id", type=int, required=True, help="Proposal index")

    command("winner", "Show the winning proposal")

    sub.add_parser("check-invariants", help="Check election state and event log")

    return parser


COMMANDS: dict[str, Callable[[argparse.Namespace, VotingService], int]] = {
    "status": cmd_status,
    "add-voter": cmd_add_voter,
    "add-proposal": cmd_add_proposal,
    "vote": cmd_vote,
    "start-proposals": _transition_command("start_proposals_registering"),
    "end-proposals": _transition_command("end_proposals_registering"),
    "start-voting": _transition_command("start_voting_session"),
    "end-voting": _transition_command("end_voting_session"),
    "tally": _transition_command("tally_votes"),
    "get-voter": cmd_get_voter,
    "get-proposal": cmd_get_proposal,
    "winner": cmd_winner,
    "check-invariants": cmd_check_invariants,
}


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    configure_structlog(environment=os.getenv("BALLOT_LOG_FORMAT", "development"))

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    handler = COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        service = _make_service(args)
    except (ValueError, OSError) as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    return handler(args, service)


if __name__ == "__main__":
    raise SystemExit(main())
