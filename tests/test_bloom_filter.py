import logging
import math
import random

import pytest
from hypothesis import given, settings, strategies as st

from arrow_bloom.algorithms.digest import DEFAULT_ENGINE, DigestEngine
from arrow_bloom.data_structures.bloom_filter import BloomFilter


class TestBloomFilter:
    @settings(max_examples=50, deadline=None)
    @given(st.lists(st.text(), max_size=50), st.integers(1, 100))
    def test_no_false_negatives(self, items, capacity):
        bf = BloomFilter.from_size(capacity * 10, capacity)
        bf.add_all(items)

        for item in items:
            assert item in bf
        assert bf.contains_all(items)
        assert bf.count == len(items)

    @settings(max_examples=30, deadline=None)
    @given(st.lists(st.integers(), min_size=1, max_size=30))
    def test_bits_only_grow(self, items):
        bf = BloomFilter(4, 25, 3)
        before = set()
        for item in items:
            bf.add(item)
            after = {i for i in range(bf.size) if bf.get_bit(i)}
            assert before <= after
            assert set(bf.positions(item)) <= after
            before = after

    @settings(max_examples=30, deadline=None)
    @given(st.lists(st.text(max_size=5), max_size=20), st.lists(st.text(max_size=5), max_size=20))
    def test_contains_all_is_conjunction(self, inserted, queried):
        bf = BloomFilter.from_size(64, 8)
        bf.add_all(inserted)
        assert bf.contains_all(queried) == all(bf.contains(q) for q in queried)

    def test_contains_all_empty(self):
        assert BloomFilter.from_size(10, 1).contains_all([])

    def test_apple_banana(self):
        bf = BloomFilter.from_size(100, 10)
        assert bf.hash_functions == 7
        bf.add("apple")
        bf.add("banana")
        assert bf.contains("apple")
        assert bf.contains("banana")
        assert bf.count == 2
        assert bf.size == 100
        bf.clear()
        assert bf.count == 0
        assert not bf.contains("apple")
        assert bf.size == 100

    def test_positions_use_salted_text(self):
        bf = BloomFilter(10, 10, 3)
        expected = [DEFAULT_ENGINE.hash_string("42" + str(x)) % 100 for x in range(3)]
        assert bf.positions(42) == expected
        assert bf.positions("42") == expected

    def test_false_positive_rate(self):
        n = 1000
        bf = BloomFilter.from_size(n * 10, n)
        bf.add_all(f"member-{i}" for i in range(n))

        trials = 50_000
        false_positives = sum(1 for i in range(trials) if f"outsider-{i}" in bf)
        expected = bf.false_positive_probability(n)
        assert false_positives / trials == pytest.approx(expected, rel=0.2)

    def test_parameters(self):
        bf = BloomFilter(2.5, 7, 2)
        assert bf.size == math.ceil(2.5 * 7)
        assert bf.expected_elements == 7
        assert bf.expected_bits_per_element == 2.5
        assert bf.hash_functions == 2

    def test_actual_bits_per_element(self):
        bf = BloomFilter.from_size(100, 10)
        assert bf.actual_bits_per_element == math.inf
        bf.add_all(["a", "b", "c", "d"])
        assert bf.actual_bits_per_element == 25.0

    def test_probabilities(self):
        bf = BloomFilter.from_size(100, 10)
        assert bf.expected_false_positive_probability() == pytest.approx((1 - math.exp(-0.7)) ** 7)
        assert bf.false_positive_probability(0) == 0.0
        assert 0 < bf.false_positive_probability(1e6) <= 1.0

    def test_fill_ratio(self):
        bf = BloomFilter(8, 1, 1)
        assert bf.fill_ratio == 0.0
        bf.add("x")
        assert bf.fill_ratio == 1 / 8

    def test_direct_bit_access(self):
        bf = BloomFilter.from_size(16, 2)
        bf.set_bit(5, True)
        assert bf.get_bit(5)
        bf.set_bit(5, False)
        assert not bf.get_bit(5)
        with pytest.raises(IndexError):
            bf.get_bit(16)
        with pytest.raises(IndexError):
            bf.set_bit(-1, True)

    def test_reinsert_counts_but_sets_same_bits(self):
        bf = BloomFilter.from_size(100, 10)
        bf.add("apple")
        snapshot = bf.bit_store.copy()
        bf.add("apple")
        assert bf.count == 2
        assert bf.bit_store == snapshot

    def test_equality_and_hash(self):
        items = ["apple", 17, 3.5, ("t", 1)]
        a = BloomFilter.from_size(200, 20)
        b = BloomFilter.from_size(200, 20)
        a.add_all(items)
        b.add_all(items)
        assert a == b
        assert hash(a) == hash(b)

        b.add("extra")
        assert a != b
        assert a != None  # noqa: E711
        assert a != "not a filter"
        assert a != BloomFilter.from_size(200, 21)

    def test_equality_ignores_count(self):
        a = BloomFilter.from_size(200, 20)
        b = BloomFilter.from_size(200, 20)
        a.add("x")
        b.add("x")
        b.add("x")
        assert a == b and hash(a) == hash(b)

    def test_union(self):
        a = BloomFilter.from_size(500, 50)
        b = BloomFilter.from_size(500, 50)
        a.add_all(["apple", "banana"])
        b.add_all(["cherry"])
        merged = a.union(b)
        assert merged.contains_all(["apple", "banana", "cherry"])
        assert merged.count == 3
        assert a.count == 2

        with pytest.raises(ValueError):
            a.union(BloomFilter.from_size(400, 50))
        with pytest.raises(TypeError):
            a.union({"apple"})

    def test_union_requires_same_hashing(self):
        a = BloomFilter.from_size(1000, 10)
        b = BloomFilter.from_size(1000, 10, engine=DigestEngine("sha1"))
        b.add_all(["cherry", "date", "elder"])
        with pytest.raises(ValueError):
            a.union(b)
        with pytest.raises(ValueError):
            b.union(a)
        with pytest.raises(ValueError):
            a.union(BloomFilter.from_size(1000, 10, engine=DigestEngine(charset="utf-16")))

        c = BloomFilter.from_size(1000, 10, engine=DigestEngine("sha1"))
        c.add("fig")
        merged = b.union(c)
        assert merged.contains_all(["cherry", "date", "elder", "fig"])

    def test_union_matches_bitwise_or(self):
        rng = random.Random(7)
        a = BloomFilter.from_size(256, 16)
        b = BloomFilter.from_size(256, 16)
        a.add_all(rng.sample(range(10_000), 16))
        b.add_all(rng.sample(range(10_000), 16))
        merged = a.union(b)
        for i in range(merged.size):
            assert merged.get_bit(i) == (a.get_bit(i) or b.get_bit(i))

    def test_from_error_rate(self):
        bf = BloomFilter.from_error_rate(1000, 0.01)
        assert bf.size == 9586
        assert bf.expected_false_positive_probability() == pytest.approx(0.01, rel=0.05)

    def test_custom_engine(self):
        sha = BloomFilter.from_size(1000, 10, engine=DigestEngine("sha1"))
        md5 = BloomFilter.from_size(1000, 10)
        sha.add("apple")
        md5.add("apple")
        assert "apple" in sha
        assert sha.positions("apple") != md5.positions("apple")

    def test_invalid_construction(self):
        with pytest.raises(ValueError):
            BloomFilter.from_size(0, 10)
        with pytest.raises(ValueError):
            BloomFilter(8, 10, 0)
        with pytest.raises(TypeError):
            BloomFilter(8, 10, 2.5)
        with pytest.raises(TypeError):
            BloomFilter.from_size(100.0, 10)

    def test_from_size_keeps_requested_size(self):
        bf = BloomFilter.from_size(29, 7)
        assert bf.size == 29
        bf.add("apple")
        assert "apple" in bf

    def test_capacity_overrun_is_logged_once(self, caplog):
        bf = BloomFilter.from_size(20, 2)
        with caplog.at_level(logging.WARNING, logger="arrow_bloom.data_structures.bloom_filter"):
            bf.add_all(range(10))
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1
        assert bf.count == 10

# --------------------------
# Running Tests
# --------------------------
#if __name__ == "__main__":
#    pytest.main([
#        "-v",
#        "--hypothesis-show-statistics",
#        "--cov=arrow_bloom",
#        "--cov-report=html:coverage"
#    ])
# --------------------------
