"""Scheduling error taxonomy."""


class SchedulingError(Exception):
    """Base class for revision scheduling failures."""


class InvalidOutcomeError(SchedulingError, ValueError):
    """Outcome value outside SUCCESS / PARTIAL / FAIL.

    Fatal to the operation; never coerced into a valid outcome.
    """

    def __init__(self, outcome: object) -> None:
        super().__init__(f"Invalid revision outcome: {outcome!r}")
        self.outcome = outcome


class CollaboratorUnavailableError(SchedulingError):
    """The capacity query or the persistence layer failed.

    呼び出し側でのリトライ対象。エンジン自身はリトライしない。
    """

    retryable = True
