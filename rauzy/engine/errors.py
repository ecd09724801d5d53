"""Engine exception hierarchy.

ValidationError        -- bad user input, raised before any computation starts
DecompositionError     -- the matrix library gave no usable expanding/complex eigenpair
CancelledError         -- cooperative cancellation; expected, not a failure
CapabilityUnavailableError -- no matrix library, or one missing an operation
"""

from __future__ import annotations


class RauzyError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(RauzyError, ValueError):
    pass


class EmptyPathError(ValidationError):
    pass


class InvalidDigitError(ValidationError):
    pass


class DecompositionError(RauzyError):
    pass


class CancelledError(RauzyError):
    pass


class CapabilityUnavailableError(RauzyError):
    pass
