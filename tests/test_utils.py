import random
import time

import pytest

from gkernels.utils import (
    Timer,
    find_ceil,
    prefix_sum,
    search,
    select_k_items,
    select_one_item,
    split,
    time_this,
)


def test_search_finds_present_and_absent():
    values = [4, 8, 15, 16]
    assert search(values, 15) is True
    assert search(values, 23) is False


def test_split_default_delimiter_skips_empty_tokens():
    assert split("  alpha beta   gamma ") == ["alpha", "beta", "gamma"]


def test_split_multiple_delimiters():
    assert split("a,b;;c", ",;") == ["a", "b", "c"]


def test_split_empty_and_only_delimiters():
    assert split("") == []
    assert split("   ") == []


def test_prefix_sum_invariants():
    values = [3, 0, 7, 2, 9]
    sums = prefix_sum(values)
    assert len(sums) == len(values) + 1
    assert sums[0] == 0
    assert sums[-1] == sum(values)
    assert [b - a for a, b in zip(sums, sums[1:])] == values


def test_prefix_sum_empty():
    assert prefix_sum([]) == [0]


def test_select_k_items_properties():
    rng = random.Random(7)
    chosen = select_k_items(5, 0, 100, rng)
    assert len(chosen) == 5
    assert len(set(chosen)) == 5
    assert all(0 <= c < 100 for c in chosen)


def test_select_k_items_with_offset_range():
    chosen = select_k_items(3, 10, 20, random.Random(1))
    assert all(10 <= c < 20 for c in chosen)
    assert len(set(chosen)) == 3


def test_select_k_items_all():
    assert sorted(select_k_items(6, 4, 10, random.Random(3))) == list(range(4, 10))


def test_select_k_items_deterministic_with_seed():
    first = select_k_items(4, 0, 50, random.Random(11))
    second = select_k_items(4, 0, 50, random.Random(11))
    assert len(first) == 4
    assert len(set(first)) == 4
    assert all(0 <= c < 50 for c in first)
    assert list(first) == list(second)


def test_select_k_items_too_many():
    with pytest.raises(ValueError):
        select_k_items(5, 0, 3)


def test_find_ceil():
    values = [1, 3, 5, 7]
    assert find_ceil(values, 4, 0, 3) == 2
    assert find_ceil(values, 1, 0, 3) == 0
    assert find_ceil(values, 8, 0, 3) == -1


def test_select_one_item_single_mass():
    rng = random.Random(5)
    picks = {select_one_item([0, 5, 0], rng) for _ in range(50)}
    assert picks == {1}


def test_select_one_item_in_range():
    rng = random.Random(9)
    dist = [1, 2, 3, 4]
    picks = [select_one_item(dist, rng) for _ in range(200)]
    assert all(0 <= p < len(dist) for p in picks)
    assert set(picks) == set(range(len(dist)))


def test_select_one_item_rejects_bad_distributions():
    with pytest.raises(ValueError):
        select_one_item([])
    with pytest.raises(ValueError):
        select_one_item([0, 0])


def test_timer_measures_elapsed_time():
    t = Timer("sleep")
    t.start()
    time.sleep(0.01)
    t.stop()
    assert t.seconds() >= 0.009
    assert t.millisecs() == pytest.approx(t.seconds() * 1e3)
    assert t.microsecs() == pytest.approx(t.seconds() * 1e6)


def test_timer_context_manager():
    with Timer("ctx") as t:
        time.sleep(0.005)
    assert t.seconds() >= 0.004
    assert t.name == "ctx"


def test_timer_stop_without_start():
    with pytest.raises(RuntimeError):
        Timer().stop()


def test_time_this_returns_result_and_reports(capsys):
    result = time_this(lambda: "done", "job")
    out = capsys.readouterr().out
    assert result == "done"
    assert out.startswith("runtime[job] = ")
    assert out.rstrip().endswith("sec")