"""Running totals of cumulative energy meter readings."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import math
from typing import TYPE_CHECKING, Any

import polars as pl
from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Mapping


class Quantity(enum.StrEnum):
    IMPORT = 'import'
    EXPORT = 'export'
    GENERATION = 'generation'


@dc.dataclass(frozen=True)
class Sample:
    datetime: dt.datetime
    value: float  # meter reading
    total: float  # running sum since the first reading


def parse_value(raw: str | float | None) -> float | None:
    """
    Meter reading as a float.

    A zero reading cannot be told apart from a missing one, so it is `None`
    like unparsable and non-finite readings.

    Examples
    --------
    >>> parse_value('12.5')
    12.5
    >>> parse_value('0') is None
    True
    >>> parse_value('n/a') is None
    True
    """
    if raw is None:
        return None

    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(value) or value == 0:
        return None

    return value


@dc.dataclass
class Series:
    """
    Running total of one cumulative meter register.

    The counter resets (meter replacement, rollover) whenever a reading is
    lower than the previous one. A reset, or a timestamp listed in `resets`,
    rebases the series: that sample contributes no delta, so the total never
    goes backwards.
    """

    quantity: str
    resets: Collection[dt.datetime] = frozenset()

    last: float | None = None
    total: float = 0.0
    samples: list[Sample] = dc.field(default_factory=list)

    skipped: int = 0  # missing, zero or unparsable readings
    rebased: int = 0

    def __len__(self) -> int:
        return len(self.samples)

    def add_value(self, raw: str | float | None, timestamp: dt.datetime):
        """
        Add one reading.

        Parameters
        ----------
        raw : str | float | None
            Reading. Missing, zero and unparsable readings are ignored.
        timestamp : dt.datetime

        Returns
        -------
        Sample | None
            The appended sample.
        """
        if (value := parse_value(raw)) is None:
            self.skipped += 1
            return None

        if self.samples and timestamp < (prev := self.samples[-1].datetime):
            logger.warning(
                '{}: {} is earlier than the previous sample ({})',
                self.quantity,
                timestamp,
                prev,
            )
            self.skipped += 1
            return None

        if self.last is None:
            self.last = value
        elif value < self.last or timestamp in self.resets:
            logger.debug(
                '{}: reset at {} ({} -> {})',
                self.quantity,
                timestamp,
                self.last,
                value,
            )
            self.rebased += 1
            self.last = value

        self.total += value - self.last
        self.last = value

        sample = Sample(datetime=timestamp, value=value, total=self.total)
        self.samples.append(sample)
        return sample

    def to_frame(self) -> pl.DataFrame:
        """Samples as a (`datetime`, `value`, `total`) frame."""
        schema = {'value': pl.Float64, 'total': pl.Float64}

        if not self.samples:
            return pl.DataFrame(schema={'datetime': pl.Datetime('us'), **schema})

        return pl.from_dicts([dc.asdict(x) for x in self.samples]).cast(schema)

    def summary(self) -> dict[str, Any]:
        return (
            self.to_frame()
            .select(
                pl.len().alias('samples'),
                (pl.col('datetime').dt.minute() == 0).sum().alias('hourly'),
                pl.col('datetime').first().alias('first'),
                pl.col('datetime').last().alias('last'),
                pl.col('total').last().alias('total'),
            )
            .row(0, named=True)
        ) | {'rebased': self.rebased, 'skipped': self.skipped}


@dc.dataclass
class Meters:
    """Import, export and generation series fed from the same CSV rows."""

    resets: Collection[dt.datetime] = frozenset()
    series: dict[Quantity, Series] = dc.field(init=False)

    def __post_init__(self):
        self.series = {q: Series(q, resets=self.resets) for q in Quantity}

    def __getitem__(self, quantity: Quantity | str) -> Series:
        return self.series[Quantity(quantity)]

    def __iter__(self) -> Iterator[Series]:
        return iter(self.series.values())

    def add_row(self, row: Mapping[str, Any]):
        """Add the readings of one parsed row (see `reader.read_csv`)."""
        timestamp = row['datetime']
        for quantity, series in self.series.items():
            series.add_value(row.get(quantity), timestamp)
