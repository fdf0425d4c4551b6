"""
Arbitrary-precision integers on 32-bit limbs.

A BigInt is a sign flag plus a little-endian tuple of limbs in base 2**32.
The limb tuple never carries a most-significant zero limb, except for the
value zero itself, which is the single limb 0 with a non-negative sign.

Only what the multiplication algorithms and the benchmark need is provided:
parsing, comparison, addition, subtraction, shifts, random generation and a
few small-scalar helpers.  The magnitude functions at the top of the module
work on plain limb sequences and are shared by the algorithms.
"""

from __future__ import annotations

import functools
import random
from typing import List, Optional, Sequence, Tuple

LIMB_BITS = 32
LIMB_BASE = 1 << LIMB_BITS
LIMB_MASK = LIMB_BASE - 1

# Largest power of ten that fits in one limb, used for decimal conversion
DECIMAL_CHUNK_DIGITS = 9
DECIMAL_CHUNK = 10 ** DECIMAL_CHUNK_DIGITS

HEX_DIGITS_PER_LIMB = LIMB_BITS // 4


class InvalidInputError(ValueError):
    """Raised when text or arguments cannot describe a BigInt."""
    pass


# ----------------------------------------------------------------------------
# 1.  Magnitude primitives (little-endian limb lists)
# ----------------------------------------------------------------------------

def normalize(limbs: List[int]) -> List[int]:
    """Strip most-significant zero limbs in place; zero stays as [0]."""
    while len(limbs) > 1 and limbs[-1] == 0:
        limbs.pop()
    if not limbs:
        limbs.append(0)
    return limbs


def is_zero_magnitude(limbs: Sequence[int]) -> bool:
    return len(limbs) == 1 and limbs[0] == 0


def compare_magnitudes(a: Sequence[int], b: Sequence[int]) -> int:
    """Return -1, 0 or 1 comparing two canonical magnitudes."""
    if len(a) != len(b):
        return -1 if len(a) < len(b) else 1
    for i in range(len(a) - 1, -1, -1):
        if a[i] != b[i]:
            return -1 if a[i] < b[i] else 1
    return 0


def add_magnitudes(a: Sequence[int], b: Sequence[int]) -> List[int]:
    if len(a) < len(b):
        a, b = b, a
    result = [0] * (len(a) + 1)
    carry = 0
    for i in range(len(b)):
        s = a[i] + b[i] + carry
        result[i] = s & LIMB_MASK
        carry = s >> LIMB_BITS
    for i in range(len(b), len(a)):
        s = a[i] + carry
        result[i] = s & LIMB_MASK
        carry = s >> LIMB_BITS
    result[len(a)] = carry
    return normalize(result)


def sub_magnitudes(a: Sequence[int], b: Sequence[int]) -> List[int]:
    """Return a - b for magnitudes with a >= b."""
    result = [0] * len(a)
    borrow = 0
    for i in range(len(a)):
        d = a[i] - (b[i] if i < len(b) else 0) - borrow
        if d < 0:
            d += LIMB_BASE
            borrow = 1
        else:
            borrow = 0
        result[i] = d
    if borrow:
        raise ArithmeticError("magnitude subtraction underflow")
    return normalize(result)


def add_shifted(acc: List[int], x: Sequence[int], offset: int) -> None:
    """Add x * B**offset into acc in place.

    acc must be long enough to absorb the final carry.
    """
    carry = 0
    k = offset
    for limb in x:
        s = acc[k] + limb + carry
        acc[k] = s & LIMB_MASK
        carry = s >> LIMB_BITS
        k += 1
    while carry:
        s = acc[k] + carry
        acc[k] = s & LIMB_MASK
        carry = s >> LIMB_BITS
        k += 1


def mul_small(a: Sequence[int], m: int, add: int = 0) -> List[int]:
    """Return a * m + add for a single-limb multiplier m."""
    result = [0] * (len(a) + 1)
    carry = add
    for i, limb in enumerate(a):
        t = limb * m + carry
        result[i] = t & LIMB_MASK
        carry = t >> LIMB_BITS
    result[len(a)] = carry
    return normalize(result)


def divmod_small(a: Sequence[int], d: int) -> Tuple[List[int], int]:
    """Divide a magnitude by a single-limb divisor, returning (quotient, remainder)."""
    if d <= 0 or d >= LIMB_BASE:
        raise ValueError(f"divisor must fit in one limb, got {d}")
    quotient = [0] * len(a)
    rem = 0
    for i in range(len(a) - 1, -1, -1):
        cur = (rem << LIMB_BITS) | a[i]
        quotient[i] = cur // d
        rem = cur - quotient[i] * d
    return normalize(quotient), rem


def shift_left_bits(a: Sequence[int], bits: int) -> List[int]:
    limb_shift, bit_shift = divmod(bits, LIMB_BITS)
    if is_zero_magnitude(a):
        return [0]
    if bit_shift == 0:
        return [0] * limb_shift + list(a)
    result = [0] * (limb_shift + len(a) + 1)
    carry = 0
    for i, limb in enumerate(a):
        t = (limb << bit_shift) | carry
        result[limb_shift + i] = t & LIMB_MASK
        carry = t >> LIMB_BITS
    result[limb_shift + len(a)] = carry
    return normalize(result)


def shift_right_bits(a: Sequence[int], bits: int) -> List[int]:
    limb_shift, bit_shift = divmod(bits, LIMB_BITS)
    if limb_shift >= len(a):
        return [0]
    if bit_shift == 0:
        return normalize(list(a[limb_shift:]))
    result = []
    for i in range(limb_shift, len(a)):
        hi = a[i + 1] if i + 1 < len(a) else 0
        result.append(((a[i] >> bit_shift) | (hi << (LIMB_BITS - bit_shift))) & LIMB_MASK)
    return normalize(result)


# ----------------------------------------------------------------------------
# 2.  BigInt value type
# ----------------------------------------------------------------------------

@functools.total_ordering
class BigInt:
    """Signed arbitrary-precision integer in canonical limb form."""

    __slots__ = ("negative", "limbs")

    def __init__(self, limbs: Sequence[int] = (0,), negative: bool = False) -> None:
        canonical = normalize(list(limbs))
        for limb in canonical:
            if not 0 <= limb <= LIMB_MASK:
                raise InvalidInputError(f"limb out of range: {limb}")
        object.__setattr__(self, "limbs", tuple(canonical))
        object.__setattr__(self, "negative", bool(negative) and not is_zero_magnitude(canonical))

    def __setattr__(self, name, value):
        raise AttributeError("BigInt is immutable")

    def __reduce__(self):
        return (BigInt, (self.limbs, self.negative))

    # -- construction -------------------------------------------------------

    @classmethod
    def zero(cls) -> "BigInt":
        return cls()

    @classmethod
    def from_int(cls, value: int) -> "BigInt":
        magnitude = abs(value)
        limbs = []
        while magnitude:
            limbs.append(magnitude & LIMB_MASK)
            magnitude >>= LIMB_BITS
        return cls(limbs or (0,), negative=value < 0)

    @classmethod
    def from_string(cls, text: str, base: Optional[int] = None) -> "BigInt":
        """
        Parse a decimal or hexadecimal integer.

        Accepts an optional sign, a ``0x`` prefix for hexadecimal (or
        ``base=16``), and ``_`` separators between digits.  Raises
        InvalidInputError for anything else.
        """
        if not isinstance(text, str):
            raise InvalidInputError(f"expected a string, got {type(text).__name__}")
        if base not in (None, 10, 16):
            raise InvalidInputError(f"unsupported base {base}")

        s = text.strip()
        negative = False
        if s[:1] in ("+", "-"):
            negative = s[0] == "-"
            s = s[1:]
        if s[:2].lower() == "0x":
            if base == 10:
                raise InvalidInputError(f"hex prefix in decimal input: {text!r}")
            base = 16
            s = s[2:]
        base = base or 10

        if s.startswith("_") or s.endswith("_") or "__" in s:
            raise InvalidInputError(f"misplaced digit separator in {text!r}")
        s = s.replace("_", "")
        valid = "0123456789abcdefABCDEF" if base == 16 else "0123456789"
        if not s or any(ch not in valid for ch in s):
            raise InvalidInputError(f"invalid base-{base} integer: {text!r}")

        if base == 16:
            limbs = []
            for end in range(len(s), 0, -HEX_DIGITS_PER_LIMB):
                limbs.append(int(s[max(0, end - HEX_DIGITS_PER_LIMB):end], 16))
            return cls(limbs, negative)

        # Fold 9-digit chunks from the most significant end
        head = len(s) % DECIMAL_CHUNK_DIGITS or DECIMAL_CHUNK_DIGITS
        limbs = [int(s[:head])]
        for start in range(head, len(s), DECIMAL_CHUNK_DIGITS):
            chunk = int(s[start:start + DECIMAL_CHUNK_DIGITS])
            limbs = mul_small(limbs, DECIMAL_CHUNK, chunk)
        return cls(limbs, negative)

    @classmethod
    def random(cls, bits: int, rng: Optional[random.Random] = None) -> "BigInt":
        """Return a non-negative value with exactly ``bits`` significant bits."""
        if not isinstance(bits, int) or bits <= 0:
            raise InvalidInputError(f"bit length must be a positive integer, got {bits!r}")
        rng = rng or random.Random()
        n_limbs, top_bits = divmod(bits, LIMB_BITS)
        limbs = [rng.getrandbits(LIMB_BITS) for _ in range(n_limbs)]
        if top_bits:
            limbs.append(rng.getrandbits(top_bits) | (1 << (top_bits - 1)))
        else:
            limbs[-1] |= 1 << (LIMB_BITS - 1)
        return cls(limbs)

    # -- inspection ---------------------------------------------------------

    def is_zero(self) -> bool:
        return is_zero_magnitude(self.limbs)

    def bit_length(self) -> int:
        if self.is_zero():
            return 0
        return (len(self.limbs) - 1) * LIMB_BITS + self.limbs[-1].bit_length()

    def __len__(self) -> int:
        return len(self.limbs)

    def __int__(self) -> int:
        value = 0
        for limb in reversed(self.limbs):
            value = (value << LIMB_BITS) | limb
        return -value if self.negative else value

    def __str__(self) -> str:
        chunks = []
        magnitude: List[int] = list(self.limbs)
        while not is_zero_magnitude(magnitude):
            magnitude, rem = divmod_small(magnitude, DECIMAL_CHUNK)
            chunks.append(rem)
        if not chunks:
            return "0"
        text = str(chunks[-1]) + "".join(f"{c:09d}" for c in reversed(chunks[:-1]))
        return "-" + text if self.negative else text

    def to_hex(self) -> str:
        text = f"{self.limbs[-1]:x}" + "".join(f"{limb:08x}" for limb in reversed(self.limbs[:-1]))
        return ("-0x" if self.negative else "0x") + text

    def __repr__(self) -> str:
        if len(self.limbs) > 4:
            return f"BigInt(<{self.bit_length()} bits>, negative={self.negative})"
        return f"BigInt({self})"

    # -- comparison ---------------------------------------------------------

    def _cmp(self, other: "BigInt") -> int:
        if self.negative != other.negative:
            return -1 if self.negative else 1
        c = compare_magnitudes(self.limbs, other.limbs)
        return -c if self.negative else c

    def __eq__(self, other) -> bool:
        if not isinstance(other, BigInt):
            return NotImplemented
        return self.negative == other.negative and self.limbs == other.limbs

    def __lt__(self, other) -> bool:
        if not isinstance(other, BigInt):
            return NotImplemented
        return self._cmp(other) < 0

    def __hash__(self) -> int:
        return hash((self.negative, self.limbs))

    # -- additive arithmetic ------------------------------------------------

    def __neg__(self) -> "BigInt":
        return BigInt(self.limbs, not self.negative)

    def __abs__(self) -> "BigInt":
        return BigInt(self.limbs)

    def __add__(self, other: "BigInt") -> "BigInt":
        if not isinstance(other, BigInt):
            return NotImplemented
        if self.negative == other.negative:
            return BigInt(add_magnitudes(self.limbs, other.limbs), self.negative)
        c = compare_magnitudes(self.limbs, other.limbs)
        if c == 0:
            return BigInt()
        if c > 0:
            return BigInt(sub_magnitudes(self.limbs, other.limbs), self.negative)
        return BigInt(sub_magnitudes(other.limbs, self.limbs), other.negative)

    def __sub__(self, other: "BigInt") -> "BigInt":
        if not isinstance(other, BigInt):
            return NotImplemented
        return self + (-other)

    # -- shifts -------------------------------------------------------------

    def shift_limbs_left(self, k: int) -> "BigInt":
        if k < 0:
            raise InvalidInputError(f"negative shift count {k}")
        if self.is_zero():
            return self
        return BigInt((0,) * k + self.limbs, self.negative)

    def shift_limbs_right(self, k: int) -> "BigInt":
        if k < 0:
            raise InvalidInputError(f"negative shift count {k}")
        return BigInt(self.limbs[k:] or (0,), self.negative)

    def __lshift__(self, bits: int) -> "BigInt":
        if bits < 0:
            raise InvalidInputError(f"negative shift count {bits}")
        return BigInt(shift_left_bits(self.limbs, bits), self.negative)

    def __rshift__(self, bits: int) -> "BigInt":
        if bits < 0:
            raise InvalidInputError(f"negative shift count {bits}")
        return BigInt(shift_right_bits(self.limbs, bits), self.negative)

    # -- small scalars ------------------------------------------------------

    def scale(self, m: int) -> "BigInt":
        """Multiply by a small non-negative integer that fits in one limb."""
        if not 0 <= m <= LIMB_MASK:
            raise ValueError(f"scale factor must fit in one limb, got {m}")
        return BigInt(mul_small(self.limbs, m), self.negative)

    def exact_divide(self, d: int) -> "BigInt":
        """Divide by a small positive integer known to divide self exactly."""
        quotient, rem = divmod_small(self.limbs, d)
        if rem:
            raise ArithmeticError(f"{d} does not divide the operand exactly")
        return BigInt(quotient, self.negative)


ZERO = BigInt()
ONE = BigInt((1,))
