"""Election engine — workflow gate, tally and the election context."""

from ballot.engine.election import Election, Notification
from ballot.engine.tally import TallyEngine
from ballot.engine.workflow import WorkflowStateMachine

__all__ = ["Election", "Notification", "TallyEngine", "WorkflowStateMachine"]
