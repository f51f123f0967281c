from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from loguru import logger
from rich import progress
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from logging import LogRecord


# stdout is reserved for the generated SQL
console = Console(stderr=True)
console.push_theme(Theme({'logging.level.success': 'bold blue'}))


class LogHandler(RichHandler):
    _NEW_LEVELS: ClassVar[dict[int, str]] = {5: 'TRACE', 25: 'SUCCESS'}

    def emit(self, record: LogRecord) -> None:
        if name := self._NEW_LEVELS.get(record.levelno):
            record.levelname = name

        return super().emit(record)

    @classmethod
    def set(
        cls,
        level: int | str = 20,
        *,
        rich_tracebacks: bool = False,
        remove: bool = True,
        **kwargs,
    ):
        """
        Route `loguru.logger` through rich on standard error.

        Parameters
        ----------
        level : int | str, optional
        rich_tracebacks : bool, optional
        remove : bool, optional
            Remove the handlers already registered (loguru's default sink).
        """
        handler = cls(
            console=console,
            markup=False,
            log_time_format='[%X]',
            rich_tracebacks=rich_tracebacks,
        )

        if remove:
            logger.remove()

        logger.add(handler, level=level, format='{message}', **kwargs)


class Progress(progress.Progress):
    @classmethod
    def get_default_columns(cls) -> tuple[progress.ProgressColumn, ...]:
        return (
            progress.TextColumn('[progress.description]{task.description}'),
            progress.BarColumn(bar_width=60),
            progress.MofNCompleteColumn(),
            progress.TimeRemainingColumn(compact=True, elapsed_when_finished=True),
        )

    @classmethod
    def trace[T](
        cls,
        sequence: Sequence[T] | Iterable[T],
        *,
        description: str = 'Working...',
        total: float | None = None,
        transient: bool = True,
    ) -> Iterable[T]:
        """
        Trace progress on standard error.

        Nothing is drawn when standard error is not a terminal.

        Yields
        ------
        T
        """
        with cls(
            console=console,
            transient=transient,
            disable=not console.is_terminal,
        ) as p:
            yield from p.track(sequence, total=total, description=description)
