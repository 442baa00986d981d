"""Key generation for textbook RSA: probable primes, prime pairs and key pairs.

Primes are probable primes found by random search, filtered through trial division and a Miller-Rabin test with the
iteration counts of FIPS 186-5 Appendix C.1. The public exponent is fixed up-front and prime candidates are chosen so
that it is invertible modulo the totient of their product.

Typical usage example:

    p, q = generate_primes(512)
    (n, e), (n, d) = generate_key_pair(512)
    check_prime(2**127 - 1)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import math
import secrets
from typing import Literal, overload

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT: int = 65537
# Smallest size whose modulus always exceeds the default public exponent.
MINIMUM_KEY_SIZE: int = PUBLIC_EXPONENT.bit_length() + 1

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0
_MINIMUM_PRIME_SEPARATION: int = 100


def _sieve(n: int = 10000) -> list[int]:
    """Sieve of Eratosthenes over the odd numbers only.

    Args:
        n: Upper bound (inclusive) of the primes to list. Defaults to 10000.

    Returns:
        All primes up to `n` in ascending order.
    """
    if n < 2:
        return []
    # Index i stands for the odd number 2 * i + 3.
    odd_count = (n - 1) // 2
    is_prime: list[bool] = [True] * odd_count
    for i in range(math.isqrt(n) // 2):
        if not is_prime[i]:
            continue
        step = 2 * i + 3
        for j in range((step * step - 3) // 2, odd_count, step):
            is_prime[j] = False
    return [2] + [2 * i + 3 for i, flag in enumerate(is_prime) if flag]


def get_pre_primes(n: int = 10000, change: bool = False) -> list[int]:
    """Get the cached small primes, sieving again when the cache is too short.

    Args:
        n: Upper bound of the primes needed. Must be >= 0.
        change: Force a new sieve bounded by exactly `n`, even when the cache already covers it.

    Returns:
        Ascending list of primes, covering at least up to `n` (exactly `n` if `change` is set).

    Raises:
        ValueError: If `n` is negative.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if change or not _SMALL_PRIMES or n > _SMALL_PRIMES_CAP:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: int, n: int = 10000) -> bool:
    """Cheap pre-check dividing `no` by the small primes up to `n`.

    Returns:
        False if `no` is certainly composite (or below 2), True if it may be prime.
    """
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime * prime > no:
            return True
        if no % prime == 0:
            return False
    return True


def _miller_rabin(w: int, iters: int) -> bool:
    """Miller-Rabin probabilistic primality test, bases drawn from `secrets`.

    Args:
        w: Odd integer to test.
        iters: Number of random bases to try.

    Returns:
        True if `w` is probably prime, False if it is composite.
    """
    if w <= 3:
        return w in (2, 3)
    w_minus = w - 1
    a = (w_minus & -w_minus).bit_length() - 1
    m = w_minus >> a
    for _ in range(iters):
        b = secrets.randbelow(w - 3) + 2
        z = pow(b, m, w)
        if z in (1, w_minus):
            continue
        for _ in range(1, a):
            z = pow(z, 2, w)
            if z == w_minus:
                break
            if z == 1:
                return False
        else:
            return False
    return True


def _default_iterations(bit_length: int) -> int:
    # FIPS 186-5, Appendix C.1
    if bit_length <= 512:
        return 40
    if bit_length <= 1024:
        return 56
    if bit_length <= 1536:
        return 64
    if bit_length <= 2048:
        return 70
    return 74


def check_prime(candidate: int, iters: int | None = None, n: int = 10000) -> bool:
    """Probabilistic primality test: trial division by small primes, then Miller-Rabin.

    Args:
        candidate: The number to test.
        iters: Number of Miller-Rabin rounds. Chosen from the bit length of `candidate` when omitted.
        n: Bound of the small primes used for trial division. Defaults to 10000.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if iters is None:
        iters = _default_iterations(candidate.bit_length())
    return _miller_rabin(candidate, iters)


def _too_close(prm_p: int, candidate: int, size: int) -> bool:
    separation = size - _MINIMUM_PRIME_SEPARATION
    if separation <= 0:
        return candidate == prm_p
    return abs(prm_p - candidate) <= (1 << separation)


def _generate_probable_prime(size: int, pub: int = PUBLIC_EXPONENT, prm_p: int | None = None) -> int:
    """Search for a probable prime of exactly `size` bits usable with the exponent `pub`.

    Candidates are odd and have their two top bits set, so the product of two such primes never loses a bit.
    A candidate `x` is only kept if `gcd(x - 1, pub) == 1`, which makes `pub` invertible modulo the totient.

    Args:
        size: Bit length of the prime.
        pub: The public exponent the prime must be compatible with.
        prm_p: The first prime of the pair when generating the second one. The result is then guaranteed to
            differ from it (and, for large primes, to be far enough from it).

    Returns:
        A probable prime.

    Raises:
        RuntimeError: If no prime turned up within a generous number of candidates.
    """
    rep_cap = size * 5 * (1 if prm_p is None else 2)
    msk = (1 << size - 1) | (1 << size - 2) | 1
    for attempt in range(1, rep_cap + 1):
        candidate = secrets.randbits(size) | msk
        if prm_p is not None and _too_close(prm_p, candidate, size):
            continue
        if math.gcd(candidate - 1, pub) == 1 and check_prime(candidate):
            logger.debug("Found %d-bit probable prime after %d candidates.", size, attempt)
            return candidate
    raise RuntimeError(f"Ran an improbable {rep_cap} loops with no prime found. Check system random number generator.")


def generate_primes(size: int, pub: int = PUBLIC_EXPONENT) -> tuple[int, int]:
    """Generates a pair of distinct primes whose product is a `size`-bit RSA modulus.

    Args:
        size: Bit length of the modulus. The first prime gets the extra bit when `size` is odd.
        pub: The public exponent. Must be odd and in range `(2**16, 2**256)` exclusive.

    Returns:
        The primes (p, q).

    Raises:
        ValueError: If `size` is below `MINIMUM_KEY_SIZE` or `pub` does not meet requirements.
    """
    if size < MINIMUM_KEY_SIZE:
        raise ValueError(f"Size must be at least {MINIMUM_KEY_SIZE}.")
    if pub % 2 == 0 or not 2**16 < pub < 2**256:
        raise ValueError("Public exponent does not meet requirements.")
    # Keeps every modulus above the public exponent.
    if size <= pub.bit_length():
        raise ValueError(f"Size must be greater than {pub.bit_length()} for this public exponent.")
    p = _generate_probable_prime((size + 1) // 2, pub)
    q = _generate_probable_prime(size // 2, pub, p)
    while p == q:
        q = _generate_probable_prime(size // 2, pub, p)
    return p, q


@overload
def generate_key_pair(size: int,
                      pub: int = PUBLIC_EXPONENT,
                      expose_primes: Literal[False] = False) -> tuple[tuple[int, int], tuple[int, int]]:
    ...


@overload
def generate_key_pair(size: int,
                      pub: int = PUBLIC_EXPONENT,
                      expose_primes: Literal[True] = ...) -> tuple[tuple[int, int], tuple[int, int, int, int]]:
    ...


def generate_key_pair(
    size: int,
    pub: int = PUBLIC_EXPONENT,
    expose_primes: bool = False
) -> tuple[tuple[int, int], tuple[int, int]] | tuple[tuple[int, int], tuple[int, int, int, int]]:
    """Generates an RSA key pair.

    The private exponent is the inverse of `pub` modulo Euler's totient `(p - 1) * (q - 1)`.

    Args:
        size: Bit length of the modulus, at least `MINIMUM_KEY_SIZE`.
        pub: The public exponent. Defaults to `PUBLIC_EXPONENT`.
        expose_primes: Also return the primes behind the modulus. Defaults to False.

    Returns:
        ((modulus, public exponent), (modulus, private exponent)), the private tuple extended with (p, q) if
        `expose_primes` is set.
    """
    p, q = generate_primes(size, pub)
    n = p * q
    totient = (p - 1) * (q - 1)
    d = pow(pub, -1, totient)
    logger.debug("Generated key pair with a %d-bit modulus.", n.bit_length())
    if not expose_primes:
        del p, q
        return (n, pub), (n, d)
    return (n, pub), (n, d, p, q)
