"""Backfill Home Assistant energy statistics from MeterMan CSV files."""

from __future__ import annotations

from . import collect, config, pipeline, reader, series, statements
from .collect import CollectError, collect_files
from .config import Config, ConfigError
from .reader import DataFormatError, read_csv
from .series import Meters, Quantity, Sample, Series

__all__ = [
    'CollectError',
    'Config',
    'ConfigError',
    'DataFormatError',
    'Meters',
    'Quantity',
    'Sample',
    'Series',
    'collect',
    'collect_files',
    'config',
    'pipeline',
    'read_csv',
    'reader',
    'series',
    'statements',
]
