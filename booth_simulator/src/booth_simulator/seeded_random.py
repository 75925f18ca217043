"""
Seeded Randomness

Deterministic hash-and-generate primitives. Every "random" choice the
simulator makes (phrasing variants, outcome jitter, outcome sampling) comes
from here, keyed by the session's outcome seed plus a context key, so the
same session always replays the same way.
"""

from typing import List, Sequence, TypeVar

T = TypeVar("T")

# Linear congruential generator constants (Numerical Recipes)
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2 ** 32

DJB2_START = 5381


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_code_units(text: str) -> List[int]:
    data = text.encode("utf-16-le")
    return [data[i] | (data[i + 1] << 8) for i in range(0, len(data), 2)]


def hash_seed(seed: str) -> int:
    """
    Hash a string seed to an unsigned integer (djb2 variant).

    Starts at 5381; for each UTF-16 code unit: hash = (hash * 33) XOR code,
    wrapped to a signed 32-bit integer. The absolute value is returned.
    """
    h = DJB2_START
    for code in _utf16_code_units(seed or ""):
        h = _to_int32(h * 33) ^ code
    return abs(h)


def seeded_random(seed: int) -> float:
    """Single LCG step mapped to [0, 1)."""
    return ((LCG_MULTIPLIER * seed + LCG_INCREMENT) % LCG_MODULUS) / LCG_MODULUS


def seeded_index(seed: str, key: str, length: int) -> int:
    """Deterministic index into a sequence of the given length."""
    if length <= 1:
        return 0
    numeric_seed = hash_seed(f"{seed}:{key}")
    return int(seeded_random(numeric_seed) * length)


def pick_variant(seed: str, key: str, variants: Sequence[T]) -> T:
    """
    Pick a variant using deterministic seeded randomness.

    Args:
        seed: Session outcome seed
        key: Unique key for this pick (e.g. "intent:ask_tool_stack:turn:2")
        variants: Candidate values

    Returns:
        The selected variant ("" when there are no variants)
    """
    if len(variants) == 0:
        return ""  # type: ignore[return-value]
    if len(variants) == 1:
        return variants[0]
    return variants[seeded_index(seed, key, len(variants))]
