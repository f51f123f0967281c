from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from loguru import logger

if TYPE_CHECKING:
    from pathlib import Path

HEADER = '#date,time,IMP,EXP,GEN-T,PWR'


@pytest.fixture
def logs():
    """Messages logged through loguru, as `LEVEL message`."""
    messages: list[str] = []

    def sink(message):
        record = message.record
        messages.append(f'{record["level"].name} {record["message"]}')

    handler = logger.add(sink, level='DEBUG')
    yield messages
    logger.remove(handler)


@pytest.fixture
def write_csv(tmp_path: Path):
    def write(relative: str, *rows: str, header: str = HEADER) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text('\n'.join([header, *rows]) + '\n', encoding='UTF-8')
        return path

    return write
