"""The Command Line Interface for rsakit.

Three subcommands mirror the library: `genkey` writes a fresh private key to standard output, `encrypt` turns a
message into a decimal ciphertext and `decrypt` turns the ciphertext back into the raw message bytes. Exit code is 0 on
success and 1 on any failure, with the reason on standard error.

Typical usage example:

    rsakit genkey 512 > my.key
    rsakit encrypt my.key "hi"
    python -m rsakit decrypt my.key 1234567890
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import os
import sys

import rsakit

# Largest bit count genkey accepts, a 32-bit unsigned integer.
MAXIMUM_KEY_SIZE = 2**32 - 1


class _Parser(argparse.ArgumentParser):
    """Argument parser that fails with exit code 1 instead of 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def numbits(text: str) -> int:
    try:
        n = rsakit.decimal_to_int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("could not parse integer") from exc
    if n > MAXIMUM_KEY_SIZE:
        raise argparse.ArgumentTypeError("integer is too large")
    return n


def ciphertext(text: str) -> int:
    try:
        return rsakit.decimal_to_int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("could not parse ciphertext") from exc


corep = _Parser(prog="rsakit", description="Textbook RSA key generation, encryption and decryption.")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {rsakit.__version__}")
corep.add_argument("--verbose", action="store_true", help="Log debug details to standard error")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands", required=True)

encrypt = commands.add_parser("encrypt", help="Encrypt a message with a public key.")
encrypt.add_argument("keyfile", help="Location of the public (or private) key file.")
encrypt.add_argument("message", help="The message to encrypt.")
decrypt = commands.add_parser("decrypt", help="Decrypt a decimal ciphertext with a private key.")
decrypt.add_argument("keyfile", help="Location of the private key file.")
decrypt.add_argument("ciphertext", type=ciphertext, help="The ciphertext as a decimal integer.")
genkey = commands.add_parser("genkey", help="Generate a private key and write it to standard output.")
genkey.add_argument("numbits", type=numbits, help="Size of the modulus in bits.")
commands.add_parser("help", help="Show this message.")


def _fail(message: str) -> int:
    print(f"{corep.prog}: {message}", file=sys.stderr)
    return 1


def encrypt_mode(key_file: str, message: str) -> int:
    """The "encrypt" subcommand. Returns the exit code."""
    try:
        key = rsakit.RSAKey.import_public(key_file)
    except (OSError, rsakit.KeyFormatError) as exc:
        return _fail(f"error reading key file {key_file}: {exc}")
    try:
        # Recover the exact bytes given on the command line.
        c = rsakit.encrypt_message(os.fsencode(message), key)
    except rsakit.MessageRangeError:
        return _fail(f"message is too long for a {key.bits}-bit key")
    try:
        sys.stdout.write(f"{rsakit.int_to_decimal(c)}\n")
        sys.stdout.flush()
    except OSError:
        return _fail("error writing ciphertext")
    return 0


def decrypt_mode(key_file: str, c: int) -> int:
    """The "decrypt" subcommand. Returns the exit code."""
    try:
        key = rsakit.RSAKey.import_private(key_file)
    except (OSError, rsakit.KeyFormatError) as exc:
        return _fail(f"error reading key file {key_file}: {exc}")
    try:
        message = rsakit.decrypt_message(c, key)
    except rsakit.MessageRangeError:
        return _fail(f"ciphertext is out of range for a {key.bits}-bit key")
    try:
        sys.stdout.buffer.write(message)
        sys.stdout.buffer.flush()
    except OSError:
        return _fail("error writing plaintext")
    return 0


def genkey_mode(size: int) -> int:
    """The "genkey" subcommand. Returns the exit code."""
    try:
        key = rsakit.RSAKey.generate(size)
    except ValueError as exc:
        return _fail(str(exc))
    try:
        key.export(sys.stdout)
    except OSError:
        return _fail("error writing key")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse the command line and run the requested subcommand."""
    args = corep.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(name)s: %(levelname)s: %(message)s",
                        stream=sys.stderr)
    match args.subcommand:
        case "encrypt":
            return encrypt_mode(args.keyfile, args.message)
        case "decrypt":
            return decrypt_mode(args.keyfile, args.ciphertext)
        case "genkey":
            return genkey_mode(args.numbits)
    corep.print_help(sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
