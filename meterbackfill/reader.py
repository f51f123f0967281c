"""
MeterMan CSV reader.

The relevant columns are located by their header label::

    #date,time,IMP,EXP,GEN-T,...
    2022-07-25,14:00,1234.5,678.9,4321.0,...

Other columns are ignored and the column order is irrelevant.
"""

from __future__ import annotations

import csv
import datetime as dt
from pathlib import Path
from typing import IO, Final
from zoneinfo import ZoneInfo

import polars as pl
from loguru import logger

type Source = str | Path | IO[str]


class DataFormatError(ValueError):
    pass


TIMESTAMP_FORMAT: Final = '%Y-%m-%d %H:%M'

DATE: Final = '#date'
TIME: Final = 'time'

# header label -> column name
VALUES: Final[dict[str, str]] = {
    'IMP': 'import',
    'EXP': 'export',
    'GEN-T': 'generation',
}
COLUMNS: Final = ('row', 'datetime', *VALUES.values())


def _name(source: Source) -> str:
    match source:
        case str() | Path():
            return str(source)
        case _:
            return str(getattr(source, 'name', '<stream>'))


def _read_rows(source: Source, encoding: str) -> list[tuple[int, list[str]]]:
    """Non-empty CSV records with their line number."""

    def read(f: IO[str]):
        reader = csv.reader(f)
        return [(reader.line_num, record) for record in reader if record]

    try:
        match source:
            case str() | Path():
                with Path(source).open('r', encoding=encoding, newline='') as f:
                    return read(f)
            case _:
                return read(source)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        msg = f'{_name(source)}: {e}'
        raise DataFormatError(msg) from e


def parse_timestamp(text: str, tz: str | None = None) -> dt.datetime:
    """
    Parse a `YYYY-MM-DD HH:MM` local timestamp.

    Parameters
    ----------
    text : str
    tz : str | None, optional
        IANA time zone. Naive datetimes (system local time) if `None`.

    Returns
    -------
    dt.datetime

    Examples
    --------
    >>> parse_timestamp('2022-07-25 14:00')
    datetime.datetime(2022, 7, 25, 14, 0)
    """
    t = dt.datetime.strptime(text.strip(), TIMESTAMP_FORMAT)  # noqa: DTZ007
    return t if tz is None else t.replace(tzinfo=ZoneInfo(tz))


def _timestamp(tz: str | None) -> pl.Expr:
    expr = pl.concat_str('date', 'time', separator=' ').str.to_datetime(
        TIMESTAMP_FORMAT, time_unit='us', strict=False
    )

    if tz is not None:
        expr = expr.dt.replace_time_zone(
            tz, ambiguous='earliest', non_existent='null'
        )

    return expr


def read_csv(
    source: Source,
    *,
    tz: str | None = None,
    encoding: str = 'UTF-8',
) -> pl.DataFrame:
    """
    Read one MeterMan CSV file.

    Rows whose column count differs from the header, and rows whose
    timestamp cannot be parsed, are skipped with a warning.

    Parameters
    ----------
    source : Source
    tz : str | None, optional
        IANA time zone of the timestamps. Naive datetimes if `None`.
    encoding : str, optional

    Returns
    -------
    pl.DataFrame
        Columns `row` (line number), `datetime`, `import`, `export`,
        `generation`. The value columns hold the raw strings, null when the
        file has no such column.

    Raises
    ------
    DataFormatError
        If the file cannot be read, is empty, or has no date/time column.
    """
    name = _name(source)
    rows = _read_rows(source, encoding)
    if len(rows) < 2:  # noqa: PLR2004
        msg = f'{name}: empty file'
        raise DataFormatError(msg)

    (_, header), *records = rows
    index = {label: i for i, label in enumerate(header)}
    if DATE not in index or TIME not in index:
        msg = f'{name}: cannot find date or time'
        raise DataFormatError(msg)

    valid: list[tuple[int, list[str]]] = []
    for line, record in records:
        if len(record) != len(header):
            logger.warning(
                '{}:{}: Mismatch in column count ({} != {})',
                name,
                line,
                len(record),
                len(header),
            )
            continue

        valid.append((line, record))

    def column(label: str) -> list[str | None]:
        if (i := index.get(label)) is None:
            return [None] * len(valid)

        return [record[i] for _, record in valid]

    data = pl.DataFrame(
        {
            'row': [line for line, _ in valid],
            'date': column(DATE),
            'time': column(TIME),
            **{col: column(label) for label, col in VALUES.items()},
        },
        schema={
            'row': pl.UInt32,
            'date': pl.String,
            'time': pl.String,
            **dict.fromkeys(VALUES.values(), pl.String),
        },
    ).with_columns(_timestamp(tz).alias('datetime'))

    invalid = data.filter(pl.col('datetime').is_null())
    for line, date, time in invalid.select('row', 'date', 'time').iter_rows():
        logger.warning('{}:{}: Cannot parse date ({} {})', name, line, date, time)

    return data.filter(pl.col('datetime').is_not_null()).select(COLUMNS)
