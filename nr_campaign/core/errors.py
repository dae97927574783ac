"""
Error taxonomy for scenario configuration and campaign execution.
"""

from typing import Iterable, Optional


class ConfigurationError(ValueError):
    """
    An unrecognized or incompatible configuration value.

    Always fatal for the campaign under the default policy. The message
    names the offending field, the rejected value and the accepted values.
    """

    def __init__(self, field: str, value, accepted: Iterable[str], reason: Optional[str] = None):
        self.field = field
        self.value = value
        self.accepted = tuple(accepted)
        self.reason = reason

        choices = ", ".join(f"'{choice}'" for choice in self.accepted)
        message = f"Invalid {field}: '{value}'."
        if reason:
            message += f" {reason}."
        message += f" Choose among {choices}."
        super().__init__(message)


class EngineFailure(RuntimeError):
    """Failure raised by the simulation engine while running a trial."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CollectionWarning(UserWarning):
    """An expected trace file was absent after a trial."""

    def __init__(self, trial: str, filename: str):
        self.trial = trial
        self.filename = filename
        super().__init__(f"{filename} not found after trial {trial}")
