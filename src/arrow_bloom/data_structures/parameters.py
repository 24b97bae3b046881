import math
import operator
from dataclasses import dataclass

from arrow_bloom import config


def optimal_hash_functions(bits_per_element: float) -> int:
    """k minimising the false positive rate: round(bits_per_element * ln 2), at least 1"""
    return max(1, math.floor(bits_per_element * math.log(2) + 0.5))


def bits_for(bits_per_element: float, expected_elements: int) -> int:
    """ceil(bits_per_element * expected_elements), ignoring float overshoot of the product"""
    return math.ceil(bits_per_element * expected_elements * (1 - 1e-12))


@dataclass(frozen=True)
class FilterParameters:
    """Sizing of a Bloom filter.

    Attributes:
        bit_count (int): Total bits, ``ceil(bits_per_element * expected_elements)``.
        expected_elements (int): Design capacity.
        hash_functions (int): Bit positions derived per element (k).
        bits_per_element (float): Space budget per expected element.

    Example:
        >>> p = FilterParameters.from_bit_count(100, 10)
        >>> p.hash_functions
        7
        >>> round(p.false_positive_probability(10), 4)
        0.0082

    """
    bit_count: int
    expected_elements: int
    hash_functions: int
    bits_per_element: float

    @classmethod
    def from_bits_per_element(cls, bits_per_element: float, expected_elements: int,
                              hash_functions: int) -> "FilterParameters":
        expected_elements = operator.index(expected_elements)
        hash_functions = operator.index(hash_functions)
        if not bits_per_element > 0:
            raise ValueError("bits_per_element must be positive")
        if expected_elements <= 0:
            raise ValueError("expected_elements must be positive")
        if hash_functions <= 0:
            raise ValueError("hash_functions must be positive")
        return cls(
            bit_count=bits_for(bits_per_element, expected_elements),
            expected_elements=expected_elements,
            hash_functions=hash_functions,
            bits_per_element=bits_per_element,
        )

    @classmethod
    def from_bit_count(cls, bit_count: int, expected_elements: int) -> "FilterParameters":
        bit_count = operator.index(bit_count)
        expected_elements = operator.index(expected_elements)
        if bit_count <= 0:
            raise ValueError("bit_count must be positive")
        if expected_elements <= 0:
            raise ValueError("expected_elements must be positive")
        bits_per_element = bit_count / expected_elements
        return cls.from_bits_per_element(
            bits_per_element, expected_elements, optimal_hash_functions(bits_per_element))

    @classmethod
    def from_error_rate(cls, expected_elements: int = config.DEFAULT_EXPECTED_ELEMENTS,
                        error_rate: float = config.DEFAULT_ERROR_RATE) -> "FilterParameters":
        """Size for a target false positive rate, then auto-tune k"""
        if not 0 < error_rate < 1:
            raise ValueError("error_rate must be between 0 and 1")
        if expected_elements <= 0:
            raise ValueError("expected_elements must be positive")
        bit_count = math.ceil(-(expected_elements * math.log(error_rate)) / (math.log(2) ** 2))
        return cls.from_bit_count(bit_count, expected_elements)

    def false_positive_probability(self, n: float) -> float:
        """(1 - e^(-k n / m))^k"""
        if n < 0:
            raise ValueError("n must be non-negative")
        k = self.hash_functions
        return (1 - math.exp(-k * n / self.bit_count)) ** k
