"""
Canonical Time Sequence

The ordered list of times-of-day a nail tech can be booked at. It is the only
place that defines what the "next" slot is: two slots are adjacent when their
times are neighbours here, whether or not a slot record exists in between.
"""

from dataclasses import dataclass
from datetime import time
from typing import Iterable, Iterator, Optional, Tuple, Union

from nailbook.core.exceptions import InvalidSlotTime


def parse_slot_time(value: Union[str, time]) -> time:
    """Accept "HH:MM" strings (surrounding whitespace ignored) or time objects."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    return time.fromisoformat(value.strip())


@dataclass(frozen=True)
class TimeSequence:
    times: Tuple[time, ...]

    def __post_init__(self) -> None:
        if not self.times:
            raise ValueError("Time sequence must contain at least one time")
        for earlier, later in zip(self.times, self.times[1:]):
            if later <= earlier:
                raise ValueError(
                    f"Time sequence must be strictly increasing ({earlier:%H:%M} then {later:%H:%M})"
                )

    @classmethod
    def from_strings(cls, values: Iterable[Union[str, time]]) -> "TimeSequence":
        return cls(tuple(parse_slot_time(v) for v in values))

    def __iter__(self) -> Iterator[time]:
        return iter(self.times)

    def __len__(self) -> int:
        return len(self.times)

    def __contains__(self, value: object) -> bool:
        return value in self.times

    def index(self, value: time) -> int:
        try:
            return self.times.index(value)
        except ValueError:
            raise InvalidSlotTime(value) from None

    def next(self, value: time) -> Optional[time]:
        """Return the time after ``value``, or None when ``value`` is the last one."""
        position = self.index(value)
        if position == len(self.times) - 1:
            return None
        return self.times[position + 1]

    def between(self, start: time, end: time) -> Tuple[time, ...]:
        """Times strictly between ``start`` and ``end`` in canonical order."""
        return self.times[self.index(start) + 1:self.index(end)]
