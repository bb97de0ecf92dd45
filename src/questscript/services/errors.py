"""Service-layer exceptions."""


class QuestRuntimeError(Exception):
    """Base exception for errors raised while a script runs."""


class LinkTargetError(QuestRuntimeError):
    """Raised when a link_script target cannot be loaded."""


class UnknownTriggerEvent(QuestRuntimeError):
    """Raised when a trigger node names an event the dispatcher does not know."""

    def __init__(self, event: str) -> None:
        super().__init__(f"Unknown trigger event '{event}'.")
        self.event = event


class RunnerStateError(QuestRuntimeError):
    """Raised when the runner is asked to do something its phase does not allow."""


class FlagStoreError(Exception):
    """Raised when the flag file cannot be read or written."""
