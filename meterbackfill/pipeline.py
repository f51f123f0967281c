"""Collect, read and accumulate the CSV files, then write the SQL."""

from __future__ import annotations

import sys
from typing import IO, TYPE_CHECKING

from loguru import logger

from .collect import collect_files
from .reader import DataFormatError, read_csv
from .series import Meters
from .statements import generate
from .utils import Progress

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Collection, Iterable, Iterator

    from _typeshed import StrPath

    from .config import Config


def accumulate(
    files: Iterable[StrPath],
    *,
    resets: Collection[dt.datetime] = frozenset(),
    tz: str | None = None,
) -> Meters:
    """
    Read the files in the given order into the import/export/generation series.

    Files that cannot be read are logged and skipped.
    """
    meters = Meters(resets=frozenset(resets))

    for path in files:
        try:
            data = read_csv(path, tz=tz)
        except DataFormatError as e:
            logger.warning('{}', e)
            continue

        logger.debug('{}: {} rows', path, data.height)
        for row in data.iter_rows(named=True):
            meters.add_row(row)

    return meters


def statements(
    meters: Meters,
    config: Config,
    *,
    now: dt.datetime | None = None,
) -> Iterator[str]:
    keys = config.keys
    for series in meters:
        yield from generate(
            series, keys[series.quantity], now=now, short_term=config.short_term
        )


def backfill(
    config: Config,
    out: IO[str] | None = None,
    *,
    now: dt.datetime | None = None,
) -> Meters:
    """
    Write the statements replacing the statistics to `out` (stdout).

    Raises
    ------
    CollectError
        If the CSV directory cannot be listed. Nothing is written.
    """
    out = sys.stdout if out is None else out

    files = collect_files(config.directory)
    logger.info('{} files in "{}"', len(files), config.directory)

    meters = accumulate(
        Progress.trace(files, description='Reading...'),
        resets=config.reset_times(),
        tz=config.tz,
    )

    for series in meters:
        s = series.summary()
        logger.info(
            '{}: {} samples ({} hourly) from {} to {}, total={}, rebased={}, '
            'skipped={}',
            series.quantity,
            s['samples'],
            s['hourly'],
            s['first'],
            s['last'],
            s['total'],
            s['rebased'],
            s['skipped'],
        )

    for statement in statements(meters, config, now=now):
        print(statement, file=out)

    return meters
