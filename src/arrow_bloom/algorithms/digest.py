import hashlib
import logging
import threading
from typing import Optional

from arrow_bloom import config

logger = logging.getLogger(__name__)


class DigestUnavailableError(RuntimeError):
    """Raised when hashlib cannot provide the requested digest algorithm."""


class DigestEngine:
    """Folds a cryptographic digest into an unsigned 32-bit hash.

    The engine digests its input with a fast hashlib algorithm (MD5 by
    default) and folds the first four bytes of the digest, most significant
    first, into an integer in ``[0, 2**32)``. The same bytes always give the
    same value, on every run and every platform.

    All engines share one hasher prototype per instance. Each digest starts
    from a copy of that prototype taken under a lock, so concurrent callers
    never interleave their updates.

    Attributes:
        algorithm (str): Name of the hashlib algorithm in use.
        charset (str): Default text encoding for ``hash_string``.

    Example:
        >>> engine = DigestEngine()
        >>> engine.hash(b"apple") == engine.hash(b"apple")
        True
        >>> 0 <= engine.hash_string("apple") < 2**32
        True

    """
    def __init__(self, algorithm: str = config.DIGEST_ALGORITHM, charset: str = config.CHARSET):
        try:
            self._prototype = hashlib.new(algorithm, usedforsecurity=False)
        except ValueError as e:
            raise DigestUnavailableError(f"Digest algorithm {algorithm!r} is not available") from e
        if self._prototype.digest_size < config.HASH_WIDTH_BYTES:
            raise DigestUnavailableError(
                f"Digest algorithm {algorithm!r} yields {self._prototype.digest_size} bytes, "
                f"need at least {config.HASH_WIDTH_BYTES}")
        self.algorithm = algorithm
        self.charset = charset
        self._lock = threading.Lock()
        logger.debug("Digest engine ready: %s (%s)", algorithm, charset)

    def digest(self, data: bytes) -> bytes:
        """Full digest of data"""
        with self._lock:
            hasher = self._prototype.copy()
            hasher.update(data)
            return hasher.digest()

    def hash(self, data: bytes) -> int:
        """Unsigned 32-bit hash of data"""
        head = self.digest(data)[:config.HASH_WIDTH_BYTES]
        return int.from_bytes(head, config.BYTE_ORDER)

    def hash_string(self, text: str, charset: Optional[str] = None) -> int:
        """Encode text (UTF-8 unless told otherwise) and hash it"""
        return self.hash(text.encode(charset or self.charset))

    def __repr__(self):
        return f"DigestEngine(algorithm={self.algorithm!r}, charset={self.charset!r})"


# Built at import so a missing default algorithm fails immediately.
DEFAULT_ENGINE = DigestEngine()


def create_hash(data) -> int:
    """Hash bytes or text with the default engine"""
    if isinstance(data, str):
        return DEFAULT_ENGINE.hash_string(data)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return DEFAULT_ENGINE.hash(bytes(data))
    raise TypeError(f"create_hash expects str or bytes-like data, got {type(data).__name__}")
