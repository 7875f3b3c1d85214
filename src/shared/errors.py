"""Exception taxonomy for the gate.

Policy outcomes (limit exceeded, fraud block, critical AML alert, wrong PIN or
code) are returned as structured results. Exceptions are reserved for input
that can never succeed, missing records, illegal lifecycle moves, and broken
configuration.
"""


class GateError(Exception):
    """Base class for all gate errors."""


class GateValidationError(GateError, ValueError):
    """Malformed input, rejected before any I/O."""


class NotFoundError(GateError, LookupError):
    """A referenced record does not exist."""


class TerminalStateError(GateError):
    """The record is in a state that does not allow the requested transition."""


class RuleConfigurationError(GateError):
    """Stored configuration could not be parsed into a valid definition."""
