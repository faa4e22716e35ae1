"""Progress observers for pipeline stages."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressObserver(Protocol):
    """
    Receives discrete units of completed work.

    Observers are presentation only; the pipeline never inspects their state.
    """

    def set_total(self, total: int) -> None:
        """Announce (or re-announce) the total number of units."""
        ...

    def advance(self, units: int = 1) -> None:
        """Report that ``units`` more units of work are complete."""
        ...

    def finish(self) -> None:
        """Report that the operation completed successfully."""
        ...


class NullProgress:
    """Observer that ignores every signal."""

    def set_total(self, total: int) -> None:
        pass

    def advance(self, units: int = 1) -> None:
        pass

    def finish(self) -> None:
        pass


class RecordingProgress:
    """Observer that keeps the signals it received."""

    def __init__(self) -> None:
        self.totals: list[int] = []
        self.completed = 0
        self.finished = False

    @property
    def total(self) -> int | None:
        return self.totals[-1] if self.totals else None

    def set_total(self, total: int) -> None:
        self.totals.append(total)

    def advance(self, units: int = 1) -> None:
        self.completed += units

    def finish(self) -> None:
        self.finished = True
