"""Election governance — administrator authorisation."""

from ballot.governance.access_controller import AccessController

__all__ = ["AccessController"]
