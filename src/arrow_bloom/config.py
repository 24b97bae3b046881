"""
Configuration constants for the Arrow Bloom filter.
"""

# Digest settings
DIGEST_ALGORITHM = "md5"  # fast 128-bit digest, collision resistance not needed
CHARSET = "utf-8"  # encoding of element text before hashing
HASH_WIDTH_BYTES = 4  # leading digest bytes folded into the 32-bit hash
BYTE_ORDER = "big"

# Sizing defaults for from_error_rate
DEFAULT_EXPECTED_ELEMENTS = 1000
DEFAULT_ERROR_RATE = 0.01
