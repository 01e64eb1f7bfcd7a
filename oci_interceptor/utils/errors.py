"""Exceptions raised by the OCI interceptor.

Every error here is fatal for the invocation: ``main`` reports it and exits
with a non-zero status without running (or after failing to run) the
underlying runtime.
"""


class InterceptorError(Exception):
    """Base class for all interceptor errors."""


class ArgumentError(InterceptorError):
    """Invalid interceptor command line input."""


class MalformedEnvVarError(ArgumentError):
    """An environment override is not in NAME=VALUE format."""


class SpecParseError(InterceptorError):
    """The bundle's runtime specification could not be read."""


class SpecWriteError(InterceptorError):
    """The mutated runtime specification could not be written back."""


class SubprocessLaunchError(InterceptorError):
    """The underlying OCI runtime could not be executed."""


class SubprocessWaitError(InterceptorError):
    """The underlying OCI runtime's termination status could not be obtained."""
