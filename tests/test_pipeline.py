from __future__ import annotations

import dataclasses as dc
import datetime as dt
import io

import pytest

from meterbackfill import pipeline
from meterbackfill.collect import CollectError
from meterbackfill.config import Config

DAY1 = [
    '2022-07-25,22:55,10.0,5.0,1.0,0',
    '2022-07-25,23:00,10.5,5.5,0,0',
]
DAY2 = [
    '2022-07-26,00:00,3.0,6.0,2.0,0',
    '2022-07-26,00:05,3.4,6.1,2.5,0',
]


def _samples(meters):
    return {s.quantity: [dc.astuple(x) for x in s.samples] for s in meters}


def test_accumulate_files_equals_concatenated(write_csv):
    files = [
        write_csv('split/2022/07/2022-07-25', *DAY1),
        write_csv('split/2022/07/2022-07-26', *DAY2),
    ]
    single = write_csv('single/2022-07', *DAY1, *DAY2)

    split = pipeline.accumulate(files)

    assert _samples(split) == _samples(pipeline.accumulate([single]))
    assert [x.total for x in split['import'].samples] == pytest.approx([
        0.0,
        0.5,
        0.5,
        0.9,
    ])
    assert [x.value for x in split['generation'].samples] == [1.0, 2.0, 2.5]


def test_accumulate_column_mismatch(write_csv):
    clean = write_csv('clean', *DAY1, *DAY2)
    dirty = write_csv('dirty', DAY1[0], '2022-07-25,22:58,1.0,1.0', *DAY1[1:], *DAY2)

    assert _samples(pipeline.accumulate([dirty])) == _samples(
        pipeline.accumulate([clean])
    )


def test_accumulate_skips_bad_files(write_csv, logs: list[str]):
    files = [
        write_csv('a', *DAY1),
        write_csv('b', '2022-07-25,23:30,1,1,1', header='time,IMP,EXP,GEN-T'),
        write_csv('c', header=''),
        write_csv('d', *DAY2),
    ]

    meters = pipeline.accumulate(files)

    assert len(meters['import']) == 4  # noqa: PLR2004
    assert sum(x.startswith('WARNING') for x in logs) == 2  # noqa: PLR2004
    assert any('cannot find date or time' in x for x in logs)
    assert any('empty file' in x for x in logs)


def test_accumulate_resets(write_csv):
    path = write_csv('a', *DAY1, *DAY2)
    reset = dt.datetime(2022, 7, 25, 23, 0)

    meters = pipeline.accumulate([path], resets={reset})

    # the export reading at the marker contributes nothing
    assert [x.total for x in meters['export'].samples] == pytest.approx([
        0.0,
        0.0,
        0.5,
        0.6,
    ])


def test_backfill(tmp_path, write_csv):
    write_csv('2022/07/2022-07-25', *DAY1)
    write_csv('2022/07/2022-07-26', *DAY2)
    config = Config(directory=tmp_path, tz='UTC', short_term_days=1)
    out = io.StringIO()

    meters = pipeline.backfill(
        config, out, now=dt.datetime(2022, 7, 26, 12, tzinfo=dt.UTC)
    )
    sql = out.getvalue().splitlines()

    assert len(meters['import']) == 4  # noqa: PLR2004

    # import: 2 hourly + 4 short-term, export: same, generation: 1 hourly + 3
    assert len(sql) == 3 * 2 + 6 + 6 + 4
    assert [x for x in sql if x.startswith('DELETE FROM statistics ')] == [
        "DELETE FROM statistics WHERE metadata_id = '14';",
        "DELETE FROM statistics WHERE metadata_id = '13';",
        "DELETE FROM statistics WHERE metadata_id = '15';",
    ]

    for key in ['14', '13', '15']:
        rows = [x for x in sql if f"'{key}'" in x]
        assert [x.startswith('DELETE') for x in rows[:2]] == [True, True]
        assert not any(x.startswith('DELETE') for x in rows[2:])

    assert (
        'INSERT INTO statistics (created, start, state, sum, metadata_id) '
        "VALUES ('2022-07-26 00:00:10', '2022-07-25 23:00:00', "
        "3.000000, 0.500000, '14');"
    ) in sql


def test_backfill_missing_directory(tmp_path):
    out = io.StringIO()

    with pytest.raises(CollectError):
        pipeline.backfill(Config(directory=tmp_path / 'missing'), out)

    assert not out.getvalue()
