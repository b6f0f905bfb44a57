"""Exception types raised across the lint pipeline."""


class ActionError(Exception):
    """Base class for failures that end the run with exit code 1."""


class ConfigError(ActionError):
    """Required configuration is missing or malformed."""


class TransportError(ActionError):
    """The GitHub API could not be reached or returned an unusable response."""


class EngineError(ActionError):
    """ESLint failed to start, crashed, or produced output we cannot read."""


class PreconditionError(ActionError):
    """An internal invariant was violated (bad path, illegal state change)."""
