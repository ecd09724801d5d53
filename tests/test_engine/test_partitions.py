"""Tests for ordered partitions over {1, 2, 3}."""

from __future__ import annotations

import pytest

from rauzy.engine.errors import ValidationError
from rauzy.engine.partitions import (
    PartitionGenerator,
    enumerate_partitions,
    partition_stats,
    theoretical_count,
    validate_partitions,
)


def test_partitions_of_four():
    assert enumerate_partitions(4) == [
        (1, 1, 1, 1),
        (1, 1, 2),
        (1, 2, 1),
        (1, 3),
        (2, 1, 1),
        (2, 2),
        (3, 1),
    ]


def test_theoretical_count():
    assert [theoretical_count(n) for n in range(0, 8)] == [1, 1, 2, 4, 7, 13, 24, 44]
    assert theoretical_count(-1) == 0


@pytest.mark.parametrize("n", range(1, 16))
def test_count_matches_recurrence(n):
    partitions = enumerate_partitions(n)
    assert len(partitions) == theoretical_count(n)
    assert len(set(partitions)) == len(partitions)
    assert validate_partitions(partitions, n)


def test_validate_partitions_rejects():
    assert not validate_partitions([(1, 4)], 5)
    assert not validate_partitions([(1, 2)], 4)


@pytest.mark.parametrize("bad", [0, -3, 21, True, 2.0])
def test_out_of_range(bad):
    with pytest.raises(ValidationError):
        PartitionGenerator().generate(bad)


def test_generator_memoizes():
    gen = PartitionGenerator()
    first = gen.generate(10)
    second = gen.generate(10)
    assert first == second
    assert first is not second
    assert gen.stats()["keys"] == [10]


def test_cache_evicts_oldest():
    gen = PartitionGenerator(cache_size=2)
    gen.generate(1)
    gen.generate(2)
    gen.generate(3)
    assert gen.stats() == {"size": 2, "keys": [2, 3]}


def test_precompute_and_clear():
    gen = PartitionGenerator()
    gen.precompute(range(1, 6))
    assert gen.stats()["size"] == 5
    gen.clear()
    assert gen.stats()["size"] == 0


def test_stats():
    stats = partition_stats(enumerate_partitions(4))
    assert stats["count"] == 7
    assert stats["min_length"] == 2
    assert stats["max_length"] == 4
    assert stats["length_distribution"] == {2: 3, 3: 3, 4: 1}
    assert partition_stats([])["count"] == 0
