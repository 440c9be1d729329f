"""Election data models — workflow status, voters, proposals.

The workflow advances through six ordered phases. Ordinals are part of
the external contract: WorkflowStatusChange notifications carry them
as integers (0-5).

Identities are opaque caller handles. They are compared after
stripping surrounding whitespace; a blank identity never reaches
the registries.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NewType, Optional


Identity = NewType("Identity", str)


def canonical_identity(value: str) -> Identity:
    """Normalise a caller handle. Raises ValueError if blank."""
    canonical = value.strip() if isinstance(value, str) else ""
    if not canonical:
        raise ValueError("Identity cannot be blank")
    return Identity(canonical)


class WorkflowStatus(int, enum.Enum):
    """Election workflow phases, in strict forward order."""
    REGISTERING_VOTERS = 0
    PROPOSALS_REGISTRATION_STARTED = 1
    PROPOSALS_REGISTRATION_ENDED = 2
    VOTING_SESSION_STARTED = 3
    VOTING_SESSION_ENDED = 4
    VOTES_TALLIED = 5

    @property
    def label(self) -> str:
        """CamelCase name used in messages and status output."""
        return "".join(part.capitalize() for part in self.name.split("_"))


@dataclass
class Voter:
    """A registered participant.

    Invariants:
    - is_registered is set once at creation and never cleared.
    - has_voted flips False → True at most once.
    - voted_proposal_id is None until the vote is cast.
    """
    is_registered: bool = True
    has_voted: bool = False
    voted_proposal_id: Optional[int] = None


@dataclass
class Proposal:
    """A candidate option, addressed by its index in the registry."""
    description: str
    vote_count: int = 0
