# errors.py
# Exceptions raised by the agent core.
#
# Parse, validation and dispatch failures inside a run are recorded as error
# steps and never raised. Only these, and whatever the LLM provider raises,
# escape to the caller.


class KineError(Exception):
    """Base class for agent errors."""


class MalformedResponseError(KineError):
    """Raised when raw LLM content cannot be handed to a parser at all."""


class ConfigurationError(KineError):
    """Raised when an Agent cannot be assembled from the given configuration."""
