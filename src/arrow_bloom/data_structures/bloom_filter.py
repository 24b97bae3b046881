import logging
import math
from typing import Iterable, Optional

from arrow_bloom.algorithms.digest import DEFAULT_ENGINE, DigestEngine
from arrow_bloom.data_structures.bit_store import BitStore
from arrow_bloom.data_structures.parameters import FilterParameters

logger = logging.getLogger(__name__)


class BloomFilter:
    """A space-efficient probabilistic data structure for membership testing.

    Bloom filters are used to test whether an element is a member of a set.
    They are probabilistic in nature, meaning there is a small chance of false
    positives (indicating an element is present when it's not), but no false
    negatives (indicating an element is not present when it is).

    Each element is reduced to its text form ``str(element)``. For every salt
    ``x`` in ``0..k-1`` the text ``str(element) + str(x)`` is hashed by the
    digest engine into an unsigned 32-bit value, and ``value % size`` picks a
    bit. Inserting sets those k bits; querying checks them.

    The bit array lives in a ``BitStore`` whose packed layout matches Arrow
    boolean buffers, so the filter contents can be handed to PyArrow as is.

    Writes are not synchronized. Guard ``add``, ``clear`` and ``set_bit``
    with a lock when several threads insert into the same filter.

    Attributes:
        parameters (FilterParameters): Size, capacity and hash count.
        bit_store (BitStore): Raw bit array. Writing to it directly bypasses
            the no-false-negative guarantee.

    Example:
        >>> bf = BloomFilter.from_size(bit_count=100, expected_elements=10)
        >>> bf.hash_functions
        7
        >>> bf.add("apple")
        >>> "apple" in bf
        True
        >>> bf.contains("cherry")
        False  # Potentially, with a small probability of being True (false positive)

    """
    def __init__(self, bits_per_element: float, expected_elements: int, hash_functions: int,
                 engine: Optional[DigestEngine] = None):
        self.parameters = FilterParameters.from_bits_per_element(
            bits_per_element, expected_elements, hash_functions)
        self.engine = engine or DEFAULT_ENGINE
        self.bit_store = BitStore(self.parameters.bit_count)
        self._count = 0
        self._overrun_logged = False
        logger.debug("Created %r", self)

    @classmethod
    def from_size(cls, bit_count: int, expected_elements: int,
                  engine: Optional[DigestEngine] = None) -> "BloomFilter":
        """Filter of bit_count bits with the hash count that minimises false positives"""
        params = FilterParameters.from_bit_count(bit_count, expected_elements)
        return cls(params.bits_per_element, params.expected_elements, params.hash_functions, engine)

    @classmethod
    def from_error_rate(cls, expected_elements: int, error_rate: float,
                        engine: Optional[DigestEngine] = None) -> "BloomFilter":
        """Filter sized to hold expected_elements at roughly error_rate false positives"""
        params = FilterParameters.from_error_rate(expected_elements, error_rate)
        return cls(params.bits_per_element, params.expected_elements, params.hash_functions, engine)

    def positions(self, element) -> list[int]:
        """Bit positions of element, one per hash function (not necessarily distinct)"""
        text = str(element)
        return [self.engine.hash_string(text + str(x)) % self.size
                for x in range(self.hash_functions)]

    def add(self, element):
        """Insert element into filter"""
        for idx in self.positions(element):
            self.bit_store.set(idx, True)
        self._count += 1
        if self._count > self.expected_elements and not self._overrun_logged:
            self._overrun_logged = True
            logger.warning("Bloom filter holds %d elements, designed for %d; "
                           "false positive rate will exceed %.4g",
                           self._count, self.expected_elements,
                           self.expected_false_positive_probability())

    def add_all(self, elements: Iterable):
        """Insert each element in order"""
        for element in elements:
            self.add(element)

    def contains(self, element) -> bool:
        """Check element membership"""
        text = str(element)
        for x in range(self.hash_functions):
            if not self.bit_store.get(self.engine.hash_string(text + str(x)) % self.size):
                return False
        return True

    def __contains__(self, element) -> bool:
        return self.contains(element)

    def contains_all(self, elements: Iterable) -> bool:
        """True if every element may be present"""
        return all(self.contains(element) for element in elements)

    def clear(self):
        """Reset all bits and the insert count"""
        self.bit_store.clear()
        self._count = 0
        self._overrun_logged = False

    def get_bit(self, index: int) -> bool:
        return self.bit_store.get(index)

    def set_bit(self, index: int, value: bool):
        """Raw bit write. Clearing a bit can introduce false negatives."""
        self.bit_store.set(index, value)

    def union(self, other: "BloomFilter") -> "BloomFilter":
        """Filter containing everything inserted into either filter"""
        if not isinstance(other, BloomFilter):
            raise TypeError(f"Cannot union BloomFilter with {type(other).__name__}")
        if (self.size, self.expected_elements, self.hash_functions) != \
                (other.size, other.expected_elements, other.hash_functions):
            raise ValueError("Cannot union Bloom filters with different parameters")
        # Bits only line up when both filters hash the same way.
        if (self.engine.algorithm, self.engine.charset) != \
                (other.engine.algorithm, other.engine.charset):
            raise ValueError(f"Cannot union Bloom filters hashed with {self.engine!r} and {other.engine!r}")
        merged = BloomFilter(self.expected_bits_per_element, self.expected_elements,
                             self.hash_functions, self.engine)
        merged.bit_store = self.bit_store.copy()
        merged.bit_store.union_update(other.bit_store)
        merged._count = self._count + other._count
        return merged

    @property
    def size(self) -> int:
        return self.parameters.bit_count

    @property
    def count(self) -> int:
        """Insert calls since construction or the last clear"""
        return self._count

    @property
    def expected_elements(self) -> int:
        return self.parameters.expected_elements

    @property
    def hash_functions(self) -> int:
        return self.parameters.hash_functions

    @property
    def expected_bits_per_element(self) -> float:
        return self.parameters.bits_per_element

    @property
    def actual_bits_per_element(self) -> float:
        """size / count, or inf before the first insert"""
        if self._count == 0:
            return math.inf
        return self.size / self._count

    @property
    def fill_ratio(self) -> float:
        """Fraction of bits set"""
        return self.bit_store.popcount() / self.size

    def expected_false_positive_probability(self) -> float:
        return self.false_positive_probability(self.expected_elements)

    def false_positive_probability(self, n: float) -> float:
        """False positive estimate after n insertions"""
        return self.parameters.false_positive_probability(n)

    def __eq__(self, other):
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return (self.size == other.size
                and self.expected_elements == other.expected_elements
                and self.hash_functions == other.hash_functions
                and self.bit_store == other.bit_store)

    def __hash__(self):
        return hash((self.size, self.expected_elements, self.hash_functions, self.bit_store))

    def __repr__(self):
        return (f"BloomFilter(size={self.size}, expected_elements={self.expected_elements}, "
                f"hash_functions={self.hash_functions}, count={self._count})")
