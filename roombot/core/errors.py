from __future__ import annotations


class RoomBotError(Exception):
    """Base class for all room bot errors."""


class ConfigurationError(RoomBotError):
    """A required setting is missing or malformed. Fatal; never retried."""


class BootstrapStrategyFailure(RoomBotError):
    """One acquisition method could not produce an initializer."""

    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"{strategy}: {reason}")


class SessionCreationFailure(RoomBotError):
    """The initializer ran but produced no usable session handle."""


class DispatchBindingError(RoomBotError):
    """A room event was left without a bound handler."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Unbound room events: {', '.join(missing)}")
