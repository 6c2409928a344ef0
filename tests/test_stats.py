import random

import pytest

from archive_audit.core.stats import (calculate_integrity_stats, collect_bad_files, median,
                                      population_std_dev)


@pytest.mark.parametrize(
    "values,expected",
    [
        ([5], 5),
        ([3, 1, 2], 2),
        ([4, 1, 3, 2], 2.5),
        ([10, 20], 15),
    ],
)
def test_median(values, expected):
    assert median(values) == expected


def test_median_ignores_input_order():
    values = [7, 1, 9, 4, 4, 12, 3, 8]
    shuffled = values[:]
    random.Random(42).shuffle(shuffled)
    assert median(values) == median(shuffled) == 5.5


def test_median_of_empty_raises():
    with pytest.raises(ValueError):
        median([])


def test_population_std_dev():
    assert population_std_dev([2000, 4000]) == 1000
    assert population_std_dev([5, 5, 5]) == 0


def test_integrity_stats_empty_input():
    assert calculate_integrity_stats([], 1000) is None


def test_integrity_stats_two_level_aggregation(make_record):
    files = [
        make_record("a.zip", 2000),
        make_record("a.zip", 4000),
        make_record("a.zip", 500),
        make_record("b.zip", 10000),
        make_record("b.zip", 20000, valid=False),
    ]
    stats = calculate_integrity_stats(files, 1000)

    assert [row.name for row in stats.rows] == ["a.zip", "b.zip"]
    a, b = stats.rows
    assert (a.total, a.empty, a.bad) == (3, 1, 0)
    assert (a.min_size, a.max_size, a.median_size, a.std_dev) == (2000, 4000, 3000, 1000)
    assert (b.total, b.empty, b.bad) == (2, 0, 1)
    assert b.median_size == 15000

    assert (stats.grand_total, stats.grand_empty, stats.grand_bad) == (5, 1, 1)
    assert stats.grand_min == 2000
    assert stats.grand_max == 20000
    assert stats.grand_median == 9000
    assert stats.grand_std_dev == 3000


def test_integrity_stats_row_without_valid_sizes(make_record):
    stats = calculate_integrity_stats([make_record("tiny.zip", 10), make_record("tiny.zip", 20)], 1000)

    row = stats.rows[0]
    assert row.empty == 2
    assert not row.valid_stats
    assert stats.grand_median == 0.0
    assert stats.grand_min == 0


def test_collect_bad_files_none_when_all_valid(make_record):
    assert collect_bad_files([make_record(), make_record("b.zip")], "A") is None


def test_collect_bad_files_groups_and_limits(make_record):
    folder = "Archive_Beam_A_2024-07-30"
    files = [make_record(f"f{i:02d}.zip", 40, folder=folder, valid=False) for i in range(12)]
    files.append(make_record("x.zip", 30, folder="Archive_Beam_A_2024-07-29", valid=False,
                             reason="File too small (30 bytes, minimum 22 bytes required)"))
    files.append(make_record("ok.zip"))

    report = collect_bad_files(files, "A", max_per_archive=10)

    assert report.total_count == 13
    assert [entry[0] for entry in report.files_by_folder] == [
        "Archive_Beam_A_2024-07-29", "Archive_Beam_A_2024-07-30"
    ]
    first_folder, first_files, first_total = report.files_by_folder[0]
    assert first_total == 1
    assert first_files[0].relative_path == "Line A/Archive_Beam_A_2024-07-29/x.zip"
    assert first_files[0].reason.startswith("File too small")

    _, shown, total = report.files_by_folder[1]
    assert total == 12
    assert len(shown) == 10
    assert shown[0].relative_path == f"Line A/{folder}/f00.zip"
