"""Policy resolver — loads election policy from JSON configuration.

Configuration lives in ``config/voting_policy.json``:

    {
      "workflow": {
        "reserve_genesis_proposal": false,
        "genesis_description": "GENESIS"
      },
      "access": {"restrict_reads": true}
    }

Missing keys take their defaults. Mistyped values are rejected at load
time so a bad config never reaches a running election.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


POLICY_FILENAME = "voting_policy.json"


@dataclass(frozen=True)
class VotingPolicy:
    """Resolved election policy."""
    reserve_genesis_proposal: bool = False
    genesis_description: str = "GENESIS"
    restrict_reads: bool = True


class PolicyResolver:
    """Resolves election policy from configuration data.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        policy = resolver.voting_policy()
    """

    def __init__(self, data: dict[str, Any]) -> None:
        self._policy = self._resolve(data)

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load policy from config_dir, falling back to defaults if absent."""
        path = Path(config_dir) / POLICY_FILENAME
        if not path.exists():
            return cls.default()
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: policy must be a JSON object")
        return cls(data)

    @classmethod
    def default(cls) -> PolicyResolver:
        return cls({})

    def voting_policy(self) -> VotingPolicy:
        return self._policy

    @staticmethod
    def _resolve(data: dict[str, Any]) -> VotingPolicy:
        defaults = VotingPolicy()
        workflow = data.get("workflow", {})
        access = data.get("access", {})
        if not isinstance(workflow, dict) or not isinstance(access, dict):
            raise ValueError("'workflow' and 'access' sections must be objects")

        reserve = workflow.get("reserve_genesis_proposal", defaults.reserve_genesis_proposal)
        description = workflow.get("genesis_description", defaults.genesis_description)
        restrict = access.get("restrict_reads", defaults.restrict_reads)

        if not isinstance(reserve, bool):
            raise ValueError("workflow.reserve_genesis_proposal must be a boolean")
        if not isinstance(description, str) or not description.strip():
            raise ValueError("workflow.genesis_description must be a non-empty string")
        if not isinstance(restrict, bool):
            raise ValueError("access.restrict_reads must be a boolean")

        return VotingPolicy(
            reserve_genesis_proposal=reserve,
            genesis_description=description.strip(),
            restrict_reads=restrict,
        )
