"""
SQL for the Home Assistant statistics tables.

Existing records of a metadata id are deleted, then the hourly samples are
inserted into `statistics` and the recent samples into
`statistics_short_term`.
"""

from __future__ import annotations

import datetime as dt
import enum
from typing import TYPE_CHECKING, Final

from .series import Sample, Series

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class Table(enum.StrEnum):
    STATISTICS = 'statistics'
    SHORT_TERM = 'statistics_short_term'


DATETIME_FORMAT: Final = '%Y-%m-%d %H:%M:%S'

CREATED_OFFSET: Final = dt.timedelta(seconds=10)  # clock skew compensation
PERIOD: Final[dict[Table, dt.timedelta]] = {
    Table.STATISTICS: dt.timedelta(hours=1),
    Table.SHORT_TERM: dt.timedelta(minutes=5),
}
SHORT_TERM_WINDOW: Final = dt.timedelta(days=14)


def quote(text: str) -> str:
    """
    SQL string literal.

    Examples
    --------
    >>> quote("sensor.o'clock")
    "'sensor.o''clock'"
    """
    escaped = text.replace("'", "''")
    return f"'{escaped}'"


def to_utc(t: dt.datetime) -> dt.datetime:
    # naive datetimes are system local time
    return t.astimezone(dt.UTC)


def is_hourly(t: dt.datetime) -> bool:
    return t.minute == 0 and t.second == 0 and t.microsecond == 0


def delete_sql(table: Table, key: str) -> str:
    return f'DELETE FROM {table} WHERE metadata_id = {quote(key)};'


def insert_sql(table: Table, sample: Sample, key: str) -> str:
    """
    Insert one sample.

    `created` is the sample time plus `CREATED_OFFSET`, `start` is the sample
    time minus the period of the table.
    """
    t = to_utc(sample.datetime)
    created = (t + CREATED_OFFSET).strftime(DATETIME_FORMAT)
    start = (t - PERIOD[table]).strftime(DATETIME_FORMAT)

    return (
        f'INSERT INTO {table} (created, start, state, sum, metadata_id) '
        f"VALUES ('{created}', '{start}', {sample.value:f}, {sample.total:f}, "
        f'{quote(key)});'
    )


def generate(
    samples: Series | Iterable[Sample],
    key: str,
    *,
    now: dt.datetime | None = None,
    short_term: dt.timedelta = SHORT_TERM_WINDOW,
) -> Iterator[str]:
    """
    Statements replacing the statistics of one metadata id.

    Parameters
    ----------
    samples : Series | Iterable[Sample]
    key : str
        `metadata_id` of the statistic (see the `statistics_meta` table).
    now : dt.datetime | None, optional
        Reference time of the short-term window. Current time if `None`.
    short_term : dt.timedelta, optional
        Samples at or after `now - short_term` are also written to
        `statistics_short_term`.

    Yields
    ------
    str
        Both deletions first, then the insertions in sample order.
    """
    if isinstance(samples, Series):
        samples = samples.samples

    since = (dt.datetime.now(dt.UTC) if now is None else to_utc(now)) - short_term

    yield delete_sql(Table.STATISTICS, key)
    yield delete_sql(Table.SHORT_TERM, key)

    for sample in samples:
        if is_hourly(sample.datetime):
            yield insert_sql(Table.STATISTICS, sample, key)

        if to_utc(sample.datetime) >= since:
            yield insert_sql(Table.SHORT_TERM, sample, key)
