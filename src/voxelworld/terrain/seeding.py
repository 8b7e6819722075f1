"""Deterministic 32-bit hashing used to seed per-chunk noise."""

MASK32 = 0xFFFFFFFF
FNV_OFFSET = 0x811C9DC5
FNV_PRIME = 16777619

# Distinguishing constants for the two noise instances of a chunk
SURFACE_SALT = 0xA1
CAVES_SALT = 0xB2
CAVES_SEED_XOR = 0x9E3779B9
FALLBACK_SALT = 0xD1


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


def hash32(text: str) -> int:
    """FNV-1a hash of a string's UTF-16 code units, as an unsigned 32-bit int."""
    h = FNV_OFFSET
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = _imul(h, FNV_PRIME)
    return h


def mix(*nums: int) -> int:
    """Fold integers into one 32-bit hash through an xorshift-multiply avalanche.

    Negative inputs are taken modulo 2**32.
    """
    h = FNV_OFFSET
    for n in nums:
        x = n & MASK32
        x ^= x >> 16
        x = _imul(x, 0x7FEB352D)
        x ^= x >> 15
        x = _imul(x, 0x846CA68B)
        x ^= x >> 16
        h ^= x
    return h


def to_unit_float(u32: int) -> float:
    """Map the low 27 bits of a 32-bit int to a float in [0, 1)."""
    return (u32 & 0x7FFFFFF) / 0x8000000


def derive_noise_seeds(seed: str, offset: tuple[int, int, int]) -> tuple[float, float]:
    """Surface and caves noise seeds for a chunk at a world-space offset.

    Args:
        seed: World seed string.
        offset: World-space voxel offset (ox, oy, oz) of the chunk.

    Returns:
        (surface_seed, caves_seed), both in [0, 1).
    """
    base = hash32(seed)
    ox, oy, oz = offset
    surface = to_unit_float(mix(base, ox, oy, oz, SURFACE_SALT))
    caves = to_unit_float(mix(base ^ CAVES_SEED_XOR, ox, oy, oz, CAVES_SALT))
    return surface, caves
