"""Textbook RSA in an Academic Sense.

Provides unpadded RSA key generation, encryption and decryption of integers, marshalling between byte strings and
integers, and a plain decimal key file format. Nothing here is padded or constant-time, do not protect real data
with it.

Typical usage example:

    key = RSAKey.generate(512)
    c = encrypt_message(b"Hi there!", key.public())
    r = decrypt_message(c, key)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsakit.keygen import check_prime
from rsakit.keygen import generate_key_pair
from rsakit.keygen import generate_primes
from rsakit.keygen import get_pre_primes
from rsakit.keygen import MINIMUM_KEY_SIZE
from rsakit.keygen import PUBLIC_EXPONENT
from rsakit.rsa import bytes_to_integer
from rsakit.rsa import decimal_to_int
from rsakit.rsa import decrypt
from rsakit.rsa import decrypt_message
from rsakit.rsa import dumps_key
from rsakit.rsa import encrypt
from rsakit.rsa import encrypt_message
from rsakit.rsa import int_to_decimal
from rsakit.rsa import integer_to_bytes
from rsakit.rsa import KeyFormatError
from rsakit.rsa import loads_private
from rsakit.rsa import loads_public
from rsakit.rsa import MessageRangeError
from rsakit.rsa import read_key
from rsakit.rsa import RSAError
from rsakit.rsa import RSAKey
from rsakit.rsa import write_key

__version__ = "0.1.0"
__all__ = [
    "RSAKey",
    "RSAError",
    "KeyFormatError",
    "MessageRangeError",
    "PUBLIC_EXPONENT",
    "MINIMUM_KEY_SIZE",
    "get_pre_primes",
    "check_prime",
    "generate_primes",
    "generate_key_pair",
    "encrypt",
    "decrypt",
    "bytes_to_integer",
    "integer_to_bytes",
    "encrypt_message",
    "decrypt_message",
    "int_to_decimal",
    "decimal_to_int",
    "dumps_key",
    "loads_public",
    "loads_private",
    "read_key",
    "write_key",
]
