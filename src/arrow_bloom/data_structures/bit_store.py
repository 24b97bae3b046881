import operator

import numpy as np
import pyarrow as pa
import pyarrow.compute as pc


class BitStore:
    """Fixed-length mutable bit vector backed by a packed numpy buffer.

    Bits are packed least-significant-bit first, eight to a byte, which is
    the layout Arrow uses for boolean arrays. That makes ``to_arrow`` a
    cheap wrap of the same bytes and keeps the store easy to hand to Arrow
    compute kernels.

    The store is not synchronized. Concurrent writers must be serialized by
    the caller.

    Attributes:
        bit_count (int): Number of addressable bits.

    Example:
        >>> bits = BitStore(10)
        >>> bits.set(3, True)
        >>> bits.get(3), bits.get(4)
        (True, False)
        >>> bits.popcount()
        1

    """
    def __init__(self, bit_count: int):
        if bit_count <= 0:
            raise ValueError("bit_count must be positive")
        self.bit_count = bit_count
        self._bits = np.zeros((bit_count + 7) // 8, dtype=np.uint8)

    def _check(self, index) -> int:
        index = operator.index(index)
        if index < 0 or index >= self.bit_count:
            raise IndexError(f"Bit index {index} out of range [0, {self.bit_count})")
        return index

    def get(self, index: int) -> bool:
        """Read one bit"""
        index = self._check(index)
        return bool(self._bits[index >> 3] & (1 << (index & 7)))

    def set(self, index: int, value: bool = True):
        """Write one bit"""
        index = self._check(index)
        mask = 1 << (index & 7)
        if value:
            self._bits[index >> 3] |= mask
        else:
            self._bits[index >> 3] &= ~mask & 0xFF

    def clear(self):
        """Reset every bit to False"""
        self._bits.fill(0)

    def popcount(self) -> int:
        """Number of set bits"""
        return pc.sum(self.to_arrow()).as_py() or 0

    def union_update(self, other: "BitStore"):
        """In-place bitwise OR with a store of the same length"""
        if other.bit_count != self.bit_count:
            raise ValueError("Cannot combine bit stores of different lengths")
        np.bitwise_or(self._bits, other._bits, out=self._bits)

    def copy(self) -> "BitStore":
        clone = BitStore(self.bit_count)
        clone._bits[:] = self._bits
        return clone

    def to_bytes(self) -> bytes:
        """Packed bits, LSB first, ceil(bit_count / 8) bytes"""
        return self._bits.tobytes()

    def to_arrow(self) -> pa.BooleanArray:
        """Arrow boolean view of the bits"""
        return pa.Array.from_buffers(
            pa.bool_(), self.bit_count, [None, pa.py_buffer(self._bits.tobytes())])

    @classmethod
    def from_arrow(cls, array: pa.BooleanArray) -> "BitStore":
        """Build a store from a null-free Arrow boolean array"""
        if not pa.types.is_boolean(array.type):
            raise ValueError(f"Expected a boolean array, got {array.type}")
        if array.null_count:
            raise ValueError("Bit arrays cannot contain nulls")
        store = cls(len(array))
        flags = array.to_numpy(zero_copy_only=False).astype(bool)
        store._bits[:] = np.packbits(flags, bitorder="little")
        return store

    def __len__(self):
        return self.bit_count

    def __eq__(self, other):
        if not isinstance(other, BitStore):
            return NotImplemented
        return self.bit_count == other.bit_count and np.array_equal(self._bits, other._bits)

    def __hash__(self):
        return hash((self.bit_count, self._bits.tobytes()))

    def __repr__(self):
        return f"BitStore(bit_count={self.bit_count}, set={self.popcount()})"
