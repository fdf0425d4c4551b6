"""
Big-integer multiplication strategies.

Every strategy computes the same product of two BigInt values:

* schoolbook  -- limb-by-limb cross product, O(n^2)
* dc          -- plain divide and conquer with four half products, O(n^2)
* karatsuba   -- three half products, O(n^1.585)
* toom3       -- five third-size products, O(n^1.465)
* ntt         -- number-theoretic transform convolution, O(n log n)

Signs, zero operands and single-limb operands are handled once in
multiply(); the algorithms themselves only ever see magnitudes of at least
two limbs.  The divide-and-conquer algorithms share an iterative engine that
keeps pending sub-products on an explicit work stack and their results in an
arena of reusable slots, so operand size never turns into Python recursion
depth.
"""

import functools
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from bigint import (
    LIMB_BITS,
    LIMB_MASK,
    BigInt,
    add_magnitudes,
    add_shifted,
    is_zero_magnitude,
    mul_small,
    normalize,
    sub_magnitudes,
)
from ntt import DEFAULT_DIGIT_BITS, NTT_MODULUS, ntt_multiply

# Base-case thresholds in limbs; at or below these the strategy delegates
KARATSUBA_THRESHOLD = 32
TOOM3_THRESHOLD = 96
MIN_THRESHOLD = 4


class Algorithm(str, Enum):
    SCHOOLBOOK = "schoolbook"
    DIVIDE_AND_CONQUER = "dc"
    KARATSUBA = "karatsuba"
    TOOM3 = "toom3"
    NTT = "ntt"

    def __str__(self) -> str:
        return self.value


ALGORITHM_LABELS = {
    Algorithm.SCHOOLBOOK: "Schoolbook",
    Algorithm.DIVIDE_AND_CONQUER: "Simple Divide & Conquer",
    Algorithm.KARATSUBA: "Karatsuba",
    Algorithm.TOOM3: "Toom-Cook-3",
    Algorithm.NTT: "NTT",
}

DEFAULT_ALGORITHMS = (
    Algorithm.SCHOOLBOOK,
    Algorithm.KARATSUBA,
    Algorithm.TOOM3,
    Algorithm.NTT,
)

Magnitude = List[int]
Multiplier = Callable[[BigInt, BigInt], BigInt]


# ----------------------------------------------------------------------------
# 1.  Schoolbook
# ----------------------------------------------------------------------------

def schoolbook_magnitude(a: Sequence[int], b: Sequence[int]) -> Magnitude:
    """Quadratic cross product with per-row carry propagation."""
    if len(a) < len(b):
        a, b = b, a
    len_a = len(a)
    result = [0] * (len_a + len(b))
    for i, bi in enumerate(b):
        if bi == 0:
            continue
        carry = 0
        k = i
        for aj in a:
            t = aj * bi + result[k] + carry
            result[k] = t & LIMB_MASK
            carry = t >> LIMB_BITS
            k += 1
        # result[i + len_a] has not been written by any earlier row
        result[k] = carry
    return normalize(result)


# ----------------------------------------------------------------------------
# 2.  Iterative divide-and-conquer engine
# ----------------------------------------------------------------------------

# A split turns one product into sub-products plus a function that combines
# their (signed) results back into the parent product.
Combine = Callable[[List[BigInt]], BigInt]
Split = Callable[[BigInt, BigInt], Tuple[List[Tuple[BigInt, BigInt]], Combine]]


def _divide_and_conquer(x: BigInt, y: BigInt, split: Split, threshold: int,
                        base_case: Callable[[Sequence[int], Sequence[int]], Magnitude]) -> BigInt:
    """
    Evaluate x * y without recursion.

    Work items are ("expand", x, y, slot) and
    ("combine", combine, children, slot, negative).  Expanding either solves a
    product directly into its arena slot or pushes a combine item followed by
    one expand item per sub-product.  A combine item is popped only after all
    its children have filled their slots.  Splits always see magnitudes; the
    sign is applied to the combined result.
    """
    arena: List[Optional[BigInt]] = [None]
    free: List[int] = []

    def allocate() -> int:
        if free:
            return free.pop()
        arena.append(None)
        return len(arena) - 1

    stack = [("expand", x, y, 0)]
    while stack:
        item = stack.pop()
        if item[0] == "expand":
            _, a, b, slot = item
            if a.is_zero() or b.is_zero():
                arena[slot] = BigInt()
                continue
            negative = a.negative != b.negative
            if len(a) <= threshold or len(b) <= threshold:
                if len(a) == 1 or len(b) == 1:
                    small, big = (a, b) if len(a) == 1 else (b, a)
                    arena[slot] = BigInt(mul_small(big.limbs, small.limbs[0]), negative)
                else:
                    arena[slot] = BigInt(base_case(a.limbs, b.limbs), negative)
                continue
            subproducts, combine = split(abs(a), abs(b))
            children = [allocate() for _ in subproducts]
            stack.append(("combine", combine, children, slot, negative))
            for (sa, sb), child in zip(subproducts, children):
                stack.append(("expand", sa, sb, child))
        else:
            _, combine, children, slot, negative = item
            products = [arena[child] for child in children]
            for child in children:
                arena[child] = None
                free.append(child)
            product = combine(products)
            arena[slot] = -product if negative else product
    return arena[0]


def _split_at(value: BigInt, m: int) -> Tuple[BigInt, BigInt]:
    """Return the (low, high) magnitudes of value split at limb m."""
    return BigInt(value.limbs[:m]), BigInt(value.limbs[m:] or (0,))


def _recombine(parts: Sequence[Magnitude], m: int, total_limbs: int) -> BigInt:
    """Return sum(parts[i] * B**(i*m)) for non-negative parts."""
    acc = [0] * (total_limbs + 2)
    for i, part in enumerate(parts):
        if not is_zero_magnitude(part):
            add_shifted(acc, part, i * m)
    return BigInt(acc)


# ----------------------------------------------------------------------------
# 3.  Karatsuba and plain divide and conquer
# ----------------------------------------------------------------------------

def _karatsuba_combine(m: int, total_limbs: int, products: List[BigInt]) -> BigInt:
    low, high, mixed = (p.limbs for p in products)
    # (x0 + x1)(y0 + y1) - x0 y0 - x1 y1 is never negative
    middle = sub_magnitudes(mixed, add_magnitudes(low, high))
    return _recombine([low, middle, high], m, total_limbs)


def _karatsuba_split(x: BigInt, y: BigInt):
    m = max(len(x), len(y)) // 2
    x0, x1 = _split_at(x, m)
    y0, y1 = _split_at(y, m)
    subproducts = [(x0, y0), (x1, y1), (x0 + x1, y0 + y1)]
    return subproducts, functools.partial(_karatsuba_combine, m, len(x) + len(y))


def _dc_combine(m: int, total_limbs: int, products: List[BigInt]) -> BigInt:
    low, high, cross_a, cross_b = (p.limbs for p in products)
    return _recombine([low, add_magnitudes(cross_a, cross_b), high], m, total_limbs)


def _dc_split(x: BigInt, y: BigInt):
    m = max(len(x), len(y)) // 2
    x0, x1 = _split_at(x, m)
    y0, y1 = _split_at(y, m)
    subproducts = [(x0, y0), (x1, y1), (x0, y1), (x1, y0)]
    return subproducts, functools.partial(_dc_combine, m, len(x) + len(y))


def karatsuba_magnitude(a: Sequence[int], b: Sequence[int],
                        threshold: int = KARATSUBA_THRESHOLD) -> Magnitude:
    product = _divide_and_conquer(BigInt(a), BigInt(b), _karatsuba_split,
                                  threshold, schoolbook_magnitude)
    return list(product.limbs)


def dc_magnitude(a: Sequence[int], b: Sequence[int],
                 threshold: int = KARATSUBA_THRESHOLD) -> Magnitude:
    product = _divide_and_conquer(BigInt(a), BigInt(b), _dc_split,
                                  threshold, schoolbook_magnitude)
    return list(product.limbs)


# ----------------------------------------------------------------------------
# 4.  Toom-Cook-3
# ----------------------------------------------------------------------------

def _toom3_evaluate(v0: BigInt, v1: BigInt, v2: BigInt) -> List[BigInt]:
    """Evaluate v0 + v1 t + v2 t^2 at t = 0, 1, -1, -2, infinity."""
    p = v0 + v2
    at_1 = p + v1
    at_m1 = p - v1
    at_m2 = ((at_m1 + v2) << 1) - v0
    return [v0, at_1, at_m1, at_m2, v2]


def _toom3_combine(k: int, total_limbs: int, products: List[BigInt]) -> BigInt:
    """
    Interpolate the five point values (Bodrato's sequence).

    Every division is exact for these evaluation points; exact_divide
    raises ArithmeticError if that ever fails to hold.
    """
    r0, r1, rm1, rm2, rinf = products
    c3 = (rm2 - r1).exact_divide(3)
    c1 = (r1 - rm1).exact_divide(2)
    c2 = rm1 - r0
    c3 = (c2 - c3).exact_divide(2) + (rinf << 1)
    c2 = c2 + c1 - rinf
    c1 = c1 - c3

    acc = [0] * (total_limbs + 2)
    for i, coeff in enumerate((r0, c1, c2, c3, rinf)):
        if coeff.negative:
            raise ArithmeticError("negative Toom-3 interpolation coefficient")
        if not coeff.is_zero():
            add_shifted(acc, coeff.limbs, i * k)
    return BigInt(acc)


def _toom3_split(x: BigInt, y: BigInt):
    k = (max(len(x), len(y)) + 2) // 3
    xs = [BigInt(x.limbs[i * k:(i + 1) * k] or (0,)) for i in range(3)]
    ys = [BigInt(y.limbs[i * k:(i + 1) * k] or (0,)) for i in range(3)]
    subproducts = list(zip(_toom3_evaluate(*xs), _toom3_evaluate(*ys)))
    return subproducts, functools.partial(_toom3_combine, k, len(x) + len(y))


def toom3_magnitude(a: Sequence[int], b: Sequence[int],
                    threshold: int = TOOM3_THRESHOLD,
                    karatsuba_threshold: int = KARATSUBA_THRESHOLD) -> Magnitude:
    base_case = functools.partial(karatsuba_magnitude, threshold=karatsuba_threshold)
    product = _divide_and_conquer(BigInt(a), BigInt(b), _toom3_split, threshold, base_case)
    return list(product.limbs)


# ----------------------------------------------------------------------------
# 5.  Dispatch
# ----------------------------------------------------------------------------

def multiply(a: BigInt, b: BigInt, algorithm: Algorithm = Algorithm.KARATSUBA,
             karatsuba_threshold: int = KARATSUBA_THRESHOLD,
             toom3_threshold: int = TOOM3_THRESHOLD,
             ntt_digit_bits: int = DEFAULT_DIGIT_BITS,
             ntt_modulus: int = NTT_MODULUS) -> BigInt:
    """Multiply two BigInt values with the selected algorithm."""
    algorithm = Algorithm(algorithm)
    if a.is_zero() or b.is_zero():
        return BigInt()
    negative = a.negative != b.negative
    if len(a) == 1 or len(b) == 1:
        small, big = (a, b) if len(a) == 1 else (b, a)
        return BigInt(mul_small(big.limbs, small.limbs[0]), negative)

    if algorithm is Algorithm.SCHOOLBOOK:
        limbs = schoolbook_magnitude(a.limbs, b.limbs)
    elif algorithm is Algorithm.DIVIDE_AND_CONQUER:
        limbs = dc_magnitude(a.limbs, b.limbs, karatsuba_threshold)
    elif algorithm is Algorithm.KARATSUBA:
        limbs = karatsuba_magnitude(a.limbs, b.limbs, karatsuba_threshold)
    elif algorithm is Algorithm.TOOM3:
        limbs = toom3_magnitude(a.limbs, b.limbs, toom3_threshold, karatsuba_threshold)
    else:
        limbs = ntt_multiply(a.limbs, b.limbs, ntt_digit_bits, ntt_modulus)
    return BigInt(limbs, negative)


def make_multiplier(algorithm, karatsuba_threshold: int = KARATSUBA_THRESHOLD,
                    toom3_threshold: int = TOOM3_THRESHOLD, **options) -> Multiplier:
    """Bind an algorithm and its tuning into a picklable two-argument callable."""
    algorithm = Algorithm(algorithm)
    for name, value in (("karatsuba_threshold", karatsuba_threshold),
                        ("toom3_threshold", toom3_threshold)):
        if value < MIN_THRESHOLD:
            raise ValueError(f"{name} must be at least {MIN_THRESHOLD}, got {value}")
    return functools.partial(multiply, algorithm=algorithm,
                             karatsuba_threshold=karatsuba_threshold,
                             toom3_threshold=toom3_threshold, **options)


def all_multipliers(karatsuba_threshold: int = KARATSUBA_THRESHOLD,
                    toom3_threshold: int = TOOM3_THRESHOLD) -> Dict[Algorithm, Multiplier]:
    return {alg: make_multiplier(alg, karatsuba_threshold, toom3_threshold) for alg in Algorithm}
