from datetime import date
from typing import Iterable, List, Optional, Protocol


class DateRange(Protocol):
    start_date: date
    end_date: date


class BlockedDateOverlay:
    """
    Date exclusions layered over the slot grid.

    A date is blocked when any range contains it (both ends inclusive).
    Overlapping ranges simply union.
    """

    def __init__(self, ranges: Iterable[DateRange] = ()) -> None:
        self._ranges: List[DateRange] = sorted(ranges, key=lambda r: (r.start_date, r.end_date))

    def __len__(self) -> int:
        return len(self._ranges)

    def blocking_range(self, day: date) -> Optional[DateRange]:
        for blocked in self._ranges:
            if blocked.start_date > day:
                break
            if day <= blocked.end_date:
                return blocked
        return None

    def is_blocked(self, day: date) -> bool:
        return self.blocking_range(day) is not None
