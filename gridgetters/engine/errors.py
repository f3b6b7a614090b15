"""
Two tiers of failure.

ActionRejected is a soft validation failure: the command is refused, state is left
unchanged and the caller may retry. InvariantViolation is a programming-contract
breach and aborts the current command.
"""


class ActionRejected(ValueError):
    """A command the current state does not allow (wrong player, illegal target, ...)."""


class InvariantViolation(RuntimeError):
    """Game state would become inconsistent. Never caught by the engine."""
