from __future__ import annotations

import datetime as dt
import math
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import msgspec

from .reader import parse_timestamp
from .series import Quantity

if TYPE_CHECKING:
    from _typeshed import StrPath

DEFAULT_DIRECTORY = Path('/var/cache/MeterMan/csv')


class ConfigError(ValueError):
    pass


def dec_hook(t: type, obj):
    if t is Path:
        return Path(obj)

    return obj


_dec_hook = dec_hook


class Config(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """
    Backfill options.

    ```toml
    directory = "/var/cache/MeterMan/csv"
    short_term_days = 14
    import_key = "14"
    export_key = "13"
    generation_key = "15"
    resets = ["2022-07-25 14:00"]
    tz = "Australia/Sydney"
    ```
    """

    directory: Path = DEFAULT_DIRECTORY
    short_term_days: float = 14.0

    # `metadata_id` of each statistic (see the `statistics_meta` table)
    import_key: str = '14'
    export_key: str = '13'
    generation_key: str = '15'

    # `YYYY-MM-DD HH:MM` local times where the meter was replaced
    resets: list[str] = msgspec.field(default_factory=list)
    tz: str | None = None

    @classmethod
    def read(
        cls,
        path: StrPath = 'config/backfill.toml',
        *,
        strict: bool = True,
        dec_hook: Callable | None = None,
    ) -> Self:
        try:
            return msgspec.toml.decode(
                Path(path).read_bytes(),
                type=cls,
                strict=strict,
                dec_hook=dec_hook or _dec_hook,
            )
        except (OSError, msgspec.DecodeError) as e:
            msg = f'{path}: {e}'
            raise ConfigError(msg) from e

    def replace(self, **kwargs: object) -> Self:
        """Copy with the given options, ignoring `None` values."""
        changes = {k: v for k, v in kwargs.items() if v is not None}
        return msgspec.structs.replace(self, **changes)

    def validate(self) -> Self:
        if not math.isfinite(self.short_term_days):
            msg = f'short_term_days must be finite ({self.short_term_days})'
            raise ConfigError(msg)
        if self.short_term_days < 0:
            msg = f'short_term_days must not be negative ({self.short_term_days})'
            raise ConfigError(msg)
        try:
            _ = dt.datetime.now(dt.UTC) - self.short_term
        except (OverflowError, ValueError) as e:
            msg = f'short_term_days out of range ({self.short_term_days})'
            raise ConfigError(msg) from e

        if len(set(self.keys.values())) != len(self.keys):
            msg = f'Duplicate metadata_id in keys: {list(self.keys.values())}'
            raise ConfigError(msg)

        if self.tz is not None:
            try:
                ZoneInfo(self.tz)
            except (ZoneInfoNotFoundError, ValueError) as e:
                msg = f'Unknown time zone: {self.tz!r}'
                raise ConfigError(msg) from e

        self.reset_times()
        return self

    @property
    def short_term(self) -> dt.timedelta:
        return dt.timedelta(days=self.short_term_days)

    @property
    def keys(self) -> dict[Quantity, str]:
        return {
            Quantity.IMPORT: self.import_key,
            Quantity.EXPORT: self.export_key,
            Quantity.GENERATION: self.generation_key,
        }

    def reset_times(self) -> frozenset[dt.datetime]:
        def parse(text: str):
            try:
                return parse_timestamp(text, tz=self.tz)
            except ValueError as e:
                msg = f'Invalid reset time: {text!r}'
                raise ConfigError(msg) from e

        return frozenset(parse(x) for x in self.resets)
