import random

import pytest

from prime_art.primality import PrimalityOracle, VerdictCache, is_prime, miller_rabin
from prime_art.utils import InvalidInputError


class TestIsPrime:
    """Test suite for the uncached Miller-Rabin test"""

    def test_values_up_to_one_are_not_prime(self):
        """Test that 1, 0 and negatives are never prime"""
        for n in (1, 0, -1, -7, -(2**127 - 1)):
            assert is_prime(n) is False

    def test_small_primes(self):
        """Test the small primes"""
        for n in (2, 3, 5, 7, 11, 13):
            assert is_prime(n) is True

    def test_small_composites(self):
        """Test the small composites"""
        for n in (4, 6, 8, 9, 10, 25, 100):
            assert is_prime(n) is False

    def test_known_prime_and_square_of_prime(self):
        """Test 7919 (prime) against 7921 = 89 * 89"""
        assert is_prime(7919) is True
        assert is_prime(7921) is False

    def test_large_mersenne_primes(self):
        """Test primes well beyond 64-bit range"""
        assert is_prime(2**89 - 1) is True
        assert is_prime(2**127 - 1) is True
        assert is_prime(2**521 - 1) is True

    def test_large_composites(self):
        """Test composites well beyond 64-bit range"""
        assert is_prime(10**100) is False
        assert is_prime(2**128 + 1) is False  # F7
        assert is_prime((2**89 - 1) * (2**127 - 1)) is False

    def test_carmichael_numbers(self):
        """Test Carmichael numbers, which fool the Fermat test"""
        for n in (561, 1105, 1729, 41041, 825265):
            assert is_prime(n) is False

    def test_digit_string_input(self):
        """Test that base-10 digit strings are accepted"""
        assert is_prime("7919") is True
        assert is_prime("0007919") is True
        assert is_prime(str(2**127 - 1)) is True

    def test_beyond_str_conversion_limit(self):
        """Test digit strings longer than the interpreter's 4300-digit str->int limit"""
        even = "2" * 4401
        assert is_prime(even, rounds=1) is False
        odd = "1" + "0" * 4399 + "1"  # 10**4400 + 1, divisible by 10**880 + 1
        assert is_prime(odd, rounds=1) is False
        assert PrimalityOracle(rounds=1).is_prime(odd) is False

    def test_non_numeric_input_fails_fast(self):
        """Test that non-numeric input raises InvalidInputError"""
        for bad in ("", "12a", "-5", " 7", "1e9", 7.0, None, True):
            with pytest.raises(InvalidInputError):
                is_prime(bad)

    def test_rounds_must_be_positive(self):
        """Test that zero rounds is rejected"""
        with pytest.raises(InvalidInputError):
            miller_rabin(97, rounds=0)

    def test_single_round(self):
        """Test a single round on a prime and a prime square"""
        assert is_prime(17, rounds=1) is True
        assert is_prime(25, rounds=1) is False

    def test_deterministic_with_seeded_rng(self):
        """Test that a fixed random sequence gives a fixed verdict"""
        n = 2**61 - 1
        verdicts = {is_prime(n, rng=random.Random(42)) for _ in range(5)}
        assert verdicts == {True}

    def test_agrees_with_trial_division(self):
        """Test every value below 3000 against trial division"""
        def slow(n):
            return n > 1 and all(n % p for p in range(2, int(n**0.5) + 1))

        rng = random.Random(1)
        for n in range(3000):
            assert miller_rabin(n, rng=rng) == slow(n), n


class TestVerdictCache:
    """Test suite for VerdictCache"""

    def test_get_and_put(self):
        """Test lookups, stats and containment"""
        cache = VerdictCache()
        assert cache.get(7) is None
        cache.put(7, True)
        cache.put(8, False)
        assert cache.get(7) is True
        assert cache.get(8) is False
        assert 8 in cache
        assert len(cache) == 2
        assert cache.hits == 2
        assert cache.misses == 1

    def test_lru_eviction(self):
        """Test that the least recently used entry is evicted first"""
        cache = VerdictCache(maxsize=2)
        cache.put(1, False)
        cache.put(2, True)
        cache.get(1)
        cache.put(3, True)
        assert 1 in cache
        assert 2 not in cache
        assert 3 in cache

    def test_zero_size_disables_storage(self):
        """Test that maxsize=0 stores nothing"""
        cache = VerdictCache(maxsize=0)
        cache.put(5, True)
        assert len(cache) == 0

    def test_unbounded(self):
        """Test that maxsize=None keeps everything"""
        cache = VerdictCache(maxsize=None)
        for n in range(1000):
            cache.put(n, False)
        assert len(cache) == 1000

    def test_clear(self):
        """Test that clear drops entries and stats"""
        cache = VerdictCache()
        cache.put(3, True)
        cache.get(3)
        cache.clear()
        assert len(cache) == 0
        assert cache.hits == 0

    def test_prime_verdict_needs_enough_rounds(self):
        """Test that a probable-prime verdict only answers requests for as many rounds"""
        cache = VerdictCache()
        cache.put(7919, True, rounds=16)
        assert cache.get(7919, rounds=8) is True
        assert cache.get(7919, rounds=32) is None

    def test_composite_verdict_answers_any_rounds(self):
        """Test that a proven composite is reused for any round count"""
        cache = VerdictCache()
        cache.put(7921, False, rounds=1)
        assert cache.get(7921, rounds=64) is False
        cache.put(7921, True, rounds=64)
        assert cache.get(7921, rounds=1) is False

    def test_negative_size_rejected(self):
        """Test that a negative bound is rejected"""
        with pytest.raises(ValueError):
            VerdictCache(maxsize=-1)


class TestPrimalityOracle:
    """Test suite for PrimalityOracle"""

    def test_cache_is_transparent(self):
        """Test that caching never changes a verdict"""
        values = list(range(2000)) + [7919, 7921, 2**89 - 1, 2**89 + 1]
        cached = PrimalityOracle(rng=random.Random(1234))
        uncached = PrimalityOracle(rng=random.Random(1234), cache=VerdictCache(maxsize=0))

        first = [cached.is_prime(n) for n in values]
        fresh = [uncached.is_prime(n) for n in values]
        again = [cached.is_prime(n) for n in values]

        assert first == fresh
        assert again == first

    def test_repeat_calls_hit_the_cache(self):
        """Test that a revisited value is not re-tested"""
        oracle = PrimalityOracle(rng=random.Random(0))
        assert oracle.is_prime(7919) is True
        assert oracle.is_prime("7919") is True
        assert oracle.tests_run == 1
        assert oracle.cache.hits == 1

    def test_found_prime_is_stable(self):
        """Test that a declared prime stays prime across calls and oracles"""
        oracle = PrimalityOracle(rng=random.Random(3))
        p = 2**107 - 1
        assert oracle.is_prime(p) is True
        assert oracle.is_prime(p) is True
        assert PrimalityOracle().is_prime(p) is True

    def test_per_call_rounds(self):
        """Test that rounds can be overridden per call"""
        oracle = PrimalityOracle(rounds=1)
        assert oracle.is_prime(7921, rounds=16) is False

    def test_low_round_verdict_is_retested_with_more_rounds(self):
        """Test that a fooled one-round verdict does not answer a stronger request"""
        cache = VerdictCache()
        cache.put(2047, True, rounds=1)  # 23 * 89, a strong pseudoprime to base 2
        oracle = PrimalityOracle(rng=random.Random(0), cache=cache)

        assert oracle.is_prime(2047, rounds=1) is True
        assert oracle.tests_run == 0
        assert oracle.is_prime(2047, rounds=32) is False
        assert oracle.tests_run == 1
        assert oracle.is_prime(2047, rounds=1) is False

    def test_callable(self):
        """Test that the oracle can be called directly"""
        oracle = PrimalityOracle()
        assert oracle(13) is True

    def test_invalid_input_skips_cache(self):
        """Test that bad input fails before the cache is touched"""
        oracle = PrimalityOracle()
        with pytest.raises(InvalidInputError):
            oracle.is_prime("not a number")
        assert oracle.cache.misses == 0
        assert oracle.tests_run == 0

    def test_rounds_must_be_positive(self):
        """Test that an oracle needs at least one round"""
        with pytest.raises(InvalidInputError):
            PrimalityOracle(rounds=0)
