"""Exceptions raised by the lead engine."""


class LeadEngineError(Exception):
    """Base class for lead engine errors."""


class UnknownStrategyError(LeadEngineError, ValueError):
    """Raised when an assignment strategy name is not recognised."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown assignment strategy: {value!r}")


class ConfigError(LeadEngineError, ValueError):
    """Raised when a scoring configuration is inconsistent."""
