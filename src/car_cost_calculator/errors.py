"""
Exception types for the car cost calculator.

The cost engine itself never raises for numeric input (it clamps); these
cover the two failure modes that sit around it:
  - ConfigurationError : a caller asked for reference data that does not exist.
  - AdvisoryUnavailable: the remote language-model service could not produce
                         a usable answer.
"""


class CarCostError(Exception):
    """Base class for all calculator errors."""


class ConfigurationError(CarCostError):
    """Reference data or settings are missing or inconsistent."""


class UnknownProfileError(ConfigurationError, KeyError):
    """Raised when a model key has no vehicle profile."""

    def __init__(self, model_key: object) -> None:
        super().__init__(f"Unknown vehicle profile: {model_key!r}")
        self.model_key = model_key

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class AdvisoryUnavailable(CarCostError):
    """
    The advisory service failed, timed out, or replied with something that
    cannot be read as a verdict. Callers show an "analysis incomplete" state;
    the numeric breakdown is unaffected.
    """

    def __init__(self, reason: str, *, raw_content: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw_content = raw_content


class SnapshotNotFoundError(CarCostError, KeyError):
    """Raised when a snapshot id is not in the store."""

    def __init__(self, snapshot_id: str) -> None:
        super().__init__(f"No snapshot with id {snapshot_id!r}")
        self.snapshot_id = snapshot_id

    def __str__(self) -> str:
        return self.args[0]
