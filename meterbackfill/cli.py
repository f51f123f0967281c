"""
Backfill Home Assistant energy statistics from MeterMan CSV files.

The generated SQL is written to standard output, e.g.::

    meter-backfill /var/cache/MeterMan/csv | sqlite3 home-assistant_v2.db
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import cyclopts
from loguru import logger

from .collect import CollectError
from .config import Config, ConfigError
from .pipeline import backfill
from .utils import LogHandler

app = cyclopts.App(help_on_error=True, help_format='markdown')


def _split(text: str) -> list[str]:
    return [x.strip() for x in text.split(',') if x.strip()]


@app.default
def main(
    directory: Path | None = None,
    *,
    config: Path | None = None,
    short_term_days: float | None = None,
    import_key: str | None = None,
    export_key: str | None = None,
    generation_key: str | None = None,
    reset: str | None = None,
    tz: str | None = None,
    log_level: Literal['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR'] = 'INFO',
):
    """
    Generate SQL replacing the import, export and generation statistics.

    Parameters
    ----------
    directory : Path | None
        Base directory of the CSV files (default `/var/cache/MeterMan/csv`).
    config : Path | None
        TOML file with the same options.
    short_term_days : float | None
        Samples of the last days also written to `statistics_short_term`
        (default 14).
    import_key : str | None
        `metadata_id` of the import records.
    export_key : str | None
        `metadata_id` of the export records.
    generation_key : str | None
        `metadata_id` of the solar generation records.
    reset : str | None
        Comma separated `YYYY-MM-DD HH:MM` times of meter replacements.
    tz : str | None
        IANA time zone of the CSV timestamps (default system local time).
    log_level : Literal['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR']
    """
    LogHandler.set(log_level)

    try:
        conf = (
            (Config.read(config) if config else Config())
            .replace(
                directory=directory,
                short_term_days=short_term_days,
                import_key=import_key,
                export_key=export_key,
                generation_key=generation_key,
                resets=None if reset is None else _split(reset),
                tz=tz,
            )
            .validate()
        )
        backfill(conf)
    except (ConfigError, CollectError) as e:
        logger.error('{}', e)
        raise SystemExit(1) from e


if __name__ == '__main__':
    app()
