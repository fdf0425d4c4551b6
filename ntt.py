"""
Number-theoretic transform (NTT) multiplication.

Operand limbs are re-split into small digits, treated as polynomial
coefficients and convolved in the ring Z/pZ for the prime

    p = 29 * 2**57 + 1 = 4179340454199820289

which has a 2**57-th root of unity.  With 16-bit digits every convolution
coefficient is bounded by min(len_a, len_b) * (2**16 - 1)**2, so the product
is exact as long as that bound stays below p.  The bound is checked before
transforming; exceeding it is a correctness failure, not a slowdown.
"""

import functools
from typing import List, Sequence, Tuple

from sympy import isprime
from sympy.ntheory import primitive_root

from bigint import LIMB_BITS, normalize

NTT_MODULUS = 4179340454199820289
DEFAULT_DIGIT_BITS = 16


class TransformOverflowError(ArithmeticError):
    """Raised when a convolution could exceed the transform modulus."""
    pass


@functools.lru_cache(maxsize=None)
def transform_parameters(modulus: int) -> Tuple[int, int]:
    """
    Return (generator, two_adicity) for a prime modulus.

    two_adicity is the largest k with 2**k dividing modulus - 1, i.e. the
    log2 of the longest supported power-of-two transform.
    """
    if modulus < 3 or not isprime(modulus):
        raise ValueError(f"transform modulus must be an odd prime, got {modulus}")
    order = modulus - 1
    two_adicity = (order & -order).bit_length() - 1
    return primitive_root(modulus), two_adicity


@functools.lru_cache(maxsize=64)
def bit_reversal_indices(n: int) -> List[int]:
    """Bit-reversal permutation for a power-of-two length n."""
    log_n = n.bit_length() - 1
    rev = [0] * n
    for i in range(1, n):
        rev[i] = (rev[i >> 1] >> 1) | ((i & 1) << (log_n - 1))
    return rev


def root_of_unity(n: int, modulus: int = NTT_MODULUS) -> int:
    """Return a primitive n-th root of unity mod modulus (n a power of two)."""
    generator, two_adicity = transform_parameters(modulus)
    if n < 1 or n & (n - 1):
        raise ValueError(f"transform length must be a power of two, got {n}")
    if n.bit_length() - 1 > two_adicity:
        raise TransformOverflowError(
            f"transform length 2^{n.bit_length() - 1} exceeds the 2^{two_adicity} "
            f"supported by modulus {modulus}")
    return pow(generator, (modulus - 1) // n, modulus)


def ntt(a: List[int], modulus: int = NTT_MODULUS, inverse: bool = False) -> List[int]:
    """In-place iterative radix-2 transform of a power-of-two length sequence."""
    n = len(a)
    root = root_of_unity(n, modulus)
    if inverse:
        root = pow(root, modulus - 2, modulus)

    rev = bit_reversal_indices(n)
    for i in range(n):
        j = rev[i]
        if i < j:
            a[i], a[j] = a[j], a[i]

    length = 2
    while length <= n:
        half = length >> 1
        w_len = pow(root, n // length, modulus)
        twiddles = [1] * half
        for k in range(1, half):
            twiddles[k] = twiddles[k - 1] * w_len % modulus
        for start in range(0, n, length):
            for k in range(half):
                i = start + k
                u = a[i]
                v = a[i + half] * twiddles[k] % modulus
                a[i] = (u + v) % modulus
                a[i + half] = (u - v) % modulus
        length <<= 1

    if inverse:
        inv_n = pow(n, modulus - 2, modulus)
        for i in range(n):
            a[i] = a[i] * inv_n % modulus
    return a


def _to_digits(limbs: Sequence[int], digit_bits: int) -> List[int]:
    per_limb = LIMB_BITS // digit_bits
    mask = (1 << digit_bits) - 1
    digits = []
    for limb in limbs:
        for _ in range(per_limb):
            digits.append(limb & mask)
            limb >>= digit_bits
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
    return digits


def _from_coefficients(coeffs: Sequence[int], digit_bits: int) -> List[int]:
    """Resolve carries across convolution coefficients and pack 32-bit limbs."""
    per_limb = LIMB_BITS // digit_bits
    mask = (1 << digit_bits) - 1
    digits = []
    carry = 0
    for c in coeffs:
        carry += c
        digits.append(carry & mask)
        carry >>= digit_bits
    while carry:
        digits.append(carry & mask)
        carry >>= digit_bits

    limbs = []
    for start in range(0, len(digits), per_limb):
        limb = 0
        for j, digit in enumerate(digits[start:start + per_limb]):
            limb |= digit << (j * digit_bits)
        limbs.append(limb)
    return normalize(limbs)


def ntt_multiply(a: Sequence[int], b: Sequence[int],
                 digit_bits: int = DEFAULT_DIGIT_BITS,
                 modulus: int = NTT_MODULUS) -> List[int]:
    """Multiply two magnitudes by NTT convolution of their digit sequences."""
    if digit_bits < 1 or LIMB_BITS % digit_bits:
        raise ValueError(f"digit_bits must divide {LIMB_BITS}, got {digit_bits}")

    da = _to_digits(a, digit_bits)
    db = _to_digits(b, digit_bits)

    bound = min(len(da), len(db)) * ((1 << digit_bits) - 1) ** 2
    if bound >= modulus:
        raise TransformOverflowError(
            f"coefficient bound {bound} reaches modulus {modulus} "
            f"({len(da)} x {len(db)} digits of {digit_bits} bits)")

    n = 1
    while n < 2 * max(len(da), len(db)):
        n <<= 1

    fa = ntt(da + [0] * (n - len(da)), modulus)
    fb = ntt(db + [0] * (n - len(db)), modulus)
    product = ntt([x * y % modulus for x, y in zip(fa, fb)], modulus, inverse=True)
    return _from_coefficients(product[:len(da) + len(db) - 1], digit_bits)
