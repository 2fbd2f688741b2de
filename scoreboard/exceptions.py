class ScoreboardError(Exception):
    pass


class ConfigurationError(ScoreboardError, ValueError):
    """Raised when a match configuration is rejected."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__(
            "Invalid match configuration:\n"
            + "\n".join(f"- {p}" for p in self.problems)
        )


class InvalidWinnerError(ScoreboardError, ValueError):
    pass


class CorruptStateError(ScoreboardError):
    """
    A match state (or stored match document) breaks an invariant.

    This is a programmer error, never a recoverable runtime condition.
    """


class StaleStateError(ScoreboardError):
    """Compare-and-swap failure: the caller worked from an old version."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Match state moved on: expected version {expected}, found {actual}"
        )
