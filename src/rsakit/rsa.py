"""Textbook RSA: the key value, the encryption primitives, message marshalling and key files.

No padding is applied anywhere in this module. Messages are plain big-endian integers, which is exactly what makes
this RSA "textbook": deterministic, malleable and only fit for study.

Key files are ASCII text holding one decimal integer per line, in this order:

    modulus
    public exponent
    private exponent    (private keys only)

Typical usage example:

    key = RSAKey.generate(512)
    c = key.encrypt(bytes_to_integer(b"hi"))
    m = integer_to_bytes(key.decrypt(c))
    key.export("my.key")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import contextlib
import logging
import os
import pathlib
import re
import sys
import tempfile
import typing

from rsakit import keygen

logger = logging.getLogger(__name__)

KEY_FIELDS = ("modulus", "public exponent", "private exponent")

_DECIMAL = re.compile(r"[0-9]+")


class RSAError(Exception):
    """Base class of the errors raised by rsakit."""


class KeyFormatError(RSAError, ValueError):
    """A key record could not be parsed into the expected fields."""


class MessageRangeError(RSAError, ValueError):
    """A message or ciphertext representative is outside of [0, mod-1]."""


class RSAKey(typing.NamedTuple):
    """An RSA key, public or private.

    The same type carries both forms: a public key has no private exponent, a private key has all three numbers and
    can be used wherever a public key is expected.

    Attributes:
        mod: The modulus of the key pair.
        pub_exp: The public exponent.
        priv_exp: The private exponent, None for a public key.
    """
    mod: int
    pub_exp: int
    priv_exp: int | None = None

    def __repr__(self) -> str:
        priv = "<hidden>" if self.is_private else None
        return f"RSAKey(bits={self.bits}, pub_exp={int_to_decimal(self.pub_exp)}, priv_exp={priv})"

    @property
    def is_private(self) -> bool:
        return self.priv_exp is not None

    @property
    def bits(self) -> int:
        return self.mod.bit_length()

    @property
    def bsize(self) -> int:
        return (self.mod.bit_length() + 7) // 8

    def public(self) -> "RSAKey":
        """The public form of this key."""
        return RSAKey(self.mod, self.pub_exp)

    def encrypt(self, message: int) -> int:
        return encrypt(message, self)

    def decrypt(self, ciphertext: int) -> int:
        return decrypt(ciphertext, self)

    def export(self, file: pathlib.Path | str | typing.TextIO) -> None:
        """Write this key, in whichever form it is, to a file or text stream."""
        write_key(file, self)

    @classmethod
    def import_public(cls, file: pathlib.Path | str | typing.TextIO) -> "RSAKey":
        """Import a public key. Private key files are accepted, their private exponent is dropped."""
        return read_key(file, private=False)

    @classmethod
    def import_private(cls, file: pathlib.Path | str | typing.TextIO) -> "RSAKey":
        """Import a private key.

        Raises:
            KeyFormatError: If the file does not hold a private key record.
        """
        return read_key(file, private=True)

    @classmethod
    def generate(cls, size: int, pub_exp: int = keygen.PUBLIC_EXPONENT) -> "RSAKey":
        """Generates a fresh private key with a `size`-bit modulus.

        Args:
            size: The size of the modulus in bits.
            pub_exp: The public exponent of the key.

        Returns:
            A new private key.
        """
        (n, pub), (_, d) = keygen.generate_key_pair(size, pub_exp)
        return cls(n, pub, d)


def _check_range(representative: int, key: RSAKey) -> None:
    if not 0 <= representative < key.mod:
        raise MessageRangeError("Message representative must be in range [0, mod-1]")


def encrypt(message: int, key: RSAKey) -> int:
    """The RSA encryption primitive, `message ** e mod n`.

    Args:
        message: The integer representative of the message.
        key: A public or private key.

    Returns:
        The ciphertext representative.

    Raises:
        MessageRangeError: If `message` is negative or not smaller than the modulus, as it could never be recovered.
    """
    _check_range(message, key)
    return pow(message, key.pub_exp, key.mod)


def decrypt(ciphertext: int, key: RSAKey) -> int:
    """The RSA decryption primitive, `ciphertext ** d mod n`.

    Args:
        ciphertext: The ciphertext representative.
        key: A private key.

    Returns:
        The message representative.

    Raises:
        ValueError: If `key` is a public key.
        MessageRangeError: If `ciphertext` is out of range for the key.
    """
    if key.priv_exp is None:
        raise ValueError("Decryption requires a private key.")
    _check_range(ciphertext, key)
    return pow(ciphertext, key.priv_exp, key.mod)


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to its big-endian unsigned integer. The empty string is 0.

    Leading zero bytes do not change the value and are therefore lost on the way back.
    """
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int | None = None) -> bytes:
    """Converts a non-negative integer to big-endian bytes.

    Args:
        msg: The integer to unmarshal.
        fixedlen: The target length of the byte string. If omitted, the shortest representation is used, which is
            the empty string for 0.

    Returns:
        The representative bytes.

    Raises:
        ValueError: If `msg` is negative.
        OverflowError: If `msg` does not fit in `fixedlen` bytes.
    """
    if msg < 0:
        raise ValueError("Cannot convert a negative integer to bytes.")
    if fixedlen is None:
        fixedlen = (msg.bit_length() + 7) // 8
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)


def encrypt_message(message: bytes, key: RSAKey) -> int:
    """Marshal `message` and encrypt it.

    Raises:
        MessageRangeError: If the message is too long for the key.
    """
    return encrypt(bytes_to_integer(message), key)


def decrypt_message(ciphertext: int, key: RSAKey) -> bytes:
    """Decrypt `ciphertext` and unmarshal the result to its shortest byte string."""
    return integer_to_bytes(decrypt(ciphertext, key))


@contextlib.contextmanager
def _unlimited_digits() -> typing.Iterator[None]:
    """Lift the interpreter's cap on int/str conversion length for the enclosed block."""
    if not hasattr(sys, "get_int_max_str_digits"):
        yield
        return
    limit = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(0)
    try:
        yield
    finally:
        sys.set_int_max_str_digits(limit)


def int_to_decimal(number: int) -> str:
    """Decimal representation of `number`, whatever its length."""
    with _unlimited_digits():
        return str(number)


def decimal_to_int(text: str) -> int:
    """Parses a plain ASCII decimal string (digits only, no sign or spacing), whatever its length.

    Raises:
        ValueError: If `text` is not made of ASCII digits only.
    """
    if not _DECIMAL.fullmatch(text):
        raise ValueError(f"Not a decimal integer: {text[:20]!r}")
    with _unlimited_digits():
        return int(text)


def dumps_key(key: RSAKey) -> str:
    """Serialize a key to the key file text format."""
    fields = [key.mod, key.pub_exp]
    if key.priv_exp is not None:
        fields.append(key.priv_exp)
    return "".join(f"{int_to_decimal(field)}\n" for field in fields)


def _parse_fields(text: str) -> list[int]:
    lines = [line.strip() for line in text.splitlines()]
    fields = [line for line in lines if line]
    if len(fields) > len(KEY_FIELDS):
        raise KeyFormatError(f"Key record has {len(fields)} fields, expected at most {len(KEY_FIELDS)}.")
    values = []
    for name, field in zip(KEY_FIELDS, fields):
        try:
            values.append(decimal_to_int(field))
        except ValueError as exc:
            raise KeyFormatError(f"The {name} is not a decimal integer.") from exc
    return values


def _build_key(values: list[int]) -> RSAKey:
    mod, exponents = values[0], values[1:]
    if mod < 2:
        raise KeyFormatError("The modulus must be at least 2.")
    for name, expo in zip(KEY_FIELDS[1:], exponents):
        if not 1 < expo < mod:
            raise KeyFormatError(f"The {name} must be in range [2, mod-1].")
    return RSAKey(*values)


def loads_public(text: str) -> RSAKey:
    """Parse a public key from key file text.

    A private key record is accepted too; only its modulus and public exponent are kept.

    Raises:
        KeyFormatError: If the record is malformed.
    """
    values = _parse_fields(text)
    if len(values) < 2:
        raise KeyFormatError(f"Public key record needs at least 2 fields, found {len(values)}.")
    return _build_key(values[:2])


def loads_private(text: str) -> RSAKey:
    """Parse a private key from key file text.

    Raises:
        KeyFormatError: If the record is malformed or has no private exponent.
    """
    values = _parse_fields(text)
    if len(values) != 3:
        raise KeyFormatError(f"Private key record needs 3 fields, found {len(values)}.")
    return _build_key(values)


def write_key(file: pathlib.Path | str | typing.TextIO, key: RSAKey) -> None:
    """Writes a key to a file path or an open text stream.

    Paths are written through a temporary file in the same directory that replaces the destination once complete,
    so a failed write never leaves a truncated key behind.

    Args:
        file: Destination path, overwritten if it exists, or a writable text stream.
        key: The key to write. Public keys are written with 2 fields, private keys with 3.

    Raises:
        OSError: If the destination cannot be written.
    """
    payload = dumps_key(key)
    if hasattr(file, "write"):
        file.write(payload)
        file.flush()
        return
    path = pathlib.Path(file)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(payload)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise
    logger.debug("Wrote %s key to %s.", "private" if key.is_private else "public", file)


def read_key(file: pathlib.Path | str | typing.TextIO, private: bool = False) -> RSAKey:
    """Reads a key from a file path or an open text stream.

    Args:
        file: The key file.
        private: Whether a private key is required.

    Returns:
        The key, in private form if `private` is set, in public form otherwise.

    Raises:
        OSError: If the file cannot be read.
        KeyFormatError: If the content is not a valid key record of the requested form.
    """
    if hasattr(file, "read"):
        text = file.read()
    else:
        try:
            with open(file, "r", encoding="ascii") as f:
                text = f.read()
        except UnicodeDecodeError as exc:
            raise KeyFormatError("Key file is not ASCII text.") from exc
        logger.debug("Read key file %s.", file)
    return loads_private(text) if private else loads_public(text)
