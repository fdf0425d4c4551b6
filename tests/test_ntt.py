"""
Tests for the number-theoretic transform.

Checks:
1. Transform parameters for the default prime
2. Forward then inverse transform restores the input
3. Products match the built-in integer product
4. The coefficient bound guard fires before a wrong product can appear
"""

import random

import pytest

from bigint import BigInt
from ntt import (
    DEFAULT_DIGIT_BITS,
    NTT_MODULUS,
    TransformOverflowError,
    bit_reversal_indices,
    ntt,
    ntt_multiply,
    root_of_unity,
    transform_parameters,
)

SMALL_PRIME = 998244353  # 119 * 2**23 + 1


class TestTransformParameters:
    """Generator and root-of-unity derivation"""

    def test_default_modulus_structure(self) -> None:
        assert NTT_MODULUS == 29 * 2 ** 57 + 1
        _, two_adicity = transform_parameters(NTT_MODULUS)
        assert two_adicity == 57

    @pytest.mark.parametrize("log_n", [1, 4, 10, 20])
    def test_root_has_exact_order(self, log_n: int) -> None:
        n = 1 << log_n
        w = root_of_unity(n)
        assert pow(w, n, NTT_MODULUS) == 1
        assert pow(w, n // 2, NTT_MODULUS) == NTT_MODULUS - 1

    def test_non_prime_modulus_raises(self) -> None:
        with pytest.raises(ValueError, match="prime"):
            transform_parameters(2 ** 32 + 2)

    def test_non_power_of_two_length_raises(self) -> None:
        with pytest.raises(ValueError, match="power of two"):
            root_of_unity(12)

    def test_length_beyond_two_adicity_raises(self) -> None:
        with pytest.raises(TransformOverflowError):
            root_of_unity(1 << 24, SMALL_PRIME)

    def test_bit_reversal(self) -> None:
        assert bit_reversal_indices(8) == [0, 4, 2, 6, 1, 5, 3, 7]


class TestTransform:
    """Forward and inverse transforms"""

    @pytest.mark.parametrize("n", [1, 2, 8, 64, 1024])
    def test_round_trip(self, n: int) -> None:
        rng = random.Random(n)
        values = [rng.randrange(NTT_MODULUS) for _ in range(n)]
        transformed = ntt(list(values))
        assert ntt(transformed, inverse=True) == values

    def test_cyclic_convolution(self) -> None:
        a = [1, 2, 3, 0]
        b = [4, 5, 0, 0]
        fa, fb = ntt(list(a)), ntt(list(b))
        product = ntt([x * y % NTT_MODULUS for x, y in zip(fa, fb)], inverse=True)
        assert product == [4, 13, 22, 15]


class TestMultiply:
    """Products through the transform"""

    @pytest.mark.parametrize("bits", [64, 1000, 8192, 65536])
    def test_matches_builtin_product(self, bits: int) -> None:
        rng = random.Random(bits)
        a, b = BigInt.random(bits, rng), BigInt.random(bits, rng)
        assert BigInt(ntt_multiply(a.limbs, b.limbs)) == BigInt.from_int(int(a) * int(b))

    def test_maximal_digits(self) -> None:
        a = BigInt.from_int(2 ** 20000 - 1)
        limbs = ntt_multiply(a.limbs, a.limbs)
        assert int(BigInt(limbs)) == (2 ** 20000 - 1) ** 2

    @pytest.mark.parametrize("digit_bits", [1, 2, 4, 8, 16])
    def test_digit_sizes(self, digit_bits: int) -> None:
        a, b = BigInt.from_int(3 ** 400), BigInt.from_int(5 ** 300)
        limbs = ntt_multiply(a.limbs, b.limbs, digit_bits=digit_bits)
        assert int(BigInt(limbs)) == 3 ** 400 * 5 ** 300

    @pytest.mark.parametrize("digit_bits", [0, 3, 5, 12, 64])
    def test_digit_bits_must_divide_limb(self, digit_bits: int) -> None:
        with pytest.raises(ValueError, match="digit_bits"):
            ntt_multiply([1, 2], [3, 4], digit_bits=digit_bits)


class TestOverflowGuard:
    """Coefficient bound against the modulus"""

    def test_small_prime_with_wide_digits_raises(self) -> None:
        a = BigInt.random(4096, random.Random(1))
        with pytest.raises(TransformOverflowError, match="coefficient bound"):
            ntt_multiply(a.limbs, a.limbs, digit_bits=DEFAULT_DIGIT_BITS, modulus=SMALL_PRIME)

    def test_overflow_is_arithmetic_error(self) -> None:
        with pytest.raises(ArithmeticError):
            ntt_multiply([0xFFFFFFFF] * 4, [0xFFFFFFFF] * 4, modulus=SMALL_PRIME)

    def test_small_prime_with_narrow_digits_is_exact(self) -> None:
        rng = random.Random(2)
        a, b = BigInt.random(4096, rng), BigInt.random(4096, rng)
        limbs = ntt_multiply(a.limbs, b.limbs, digit_bits=8, modulus=SMALL_PRIME)
        assert BigInt(limbs) == BigInt.from_int(int(a) * int(b))
