"""
Cryptographic operations for the credential vault.

Key derivation and verification use Argon2id, field and key encryption use
AES-256-GCM. Nothing in this module ever logs key material or plaintext.
"""

import os
import base64
import binascii
from typing import Tuple, Union

from argon2 import PasswordHasher, Type, extract_parameters
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from . import config
from .exceptions import DecryptError, HashParseError, KdfError


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def b64decode(token: str) -> bytes:
    """
    Strict standard base64 decoding.

    Raises:
        ValueError: If the token is not canonical base64.
    """
    try:
        data = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64 token: {e}") from e
    # Reject tokens whose unused trailing bits are set, so one byte string has one encoding.
    if b64encode(data) != token:
        raise ValueError("non-canonical base64 token")
    return data


def encode_blob(nonce: bytes, ciphertext: bytes) -> str:
    """Render a nonce and ciphertext as ``<b64 nonce>:<b64 ciphertext>``."""
    return f"{b64encode(nonce)}{config.BLOB_SEPARATOR}{b64encode(ciphertext)}"


def decode_blob(blob: Union[str, bytes]) -> Tuple[bytes, bytes]:
    """
    Split a ``nonce:ciphertext`` blob into raw nonce and ciphertext.

    Raises:
        DecryptError: If the blob is not well formed.
    """
    if isinstance(blob, (bytes, bytearray, memoryview)):
        try:
            blob = bytes(blob).decode('ascii')
        except UnicodeDecodeError as e:
            raise DecryptError("Ciphertext blob is not ASCII text") from e

    nonce_token, sep, ct_token = blob.partition(config.BLOB_SEPARATOR)
    if not sep:
        raise DecryptError("Ciphertext blob is missing the nonce separator")

    try:
        nonce = b64decode(nonce_token)
        ciphertext = b64decode(ct_token)
    except ValueError as e:
        raise DecryptError(f"Ciphertext blob encoding invalid: {e}") from e

    if len(nonce) != config.NONCE_SIZE:
        raise DecryptError(f"Nonce must be {config.NONCE_SIZE} bytes, got {len(nonce)}")
    if len(ciphertext) < config.TAG_SIZE:
        raise DecryptError("Ciphertext shorter than the authentication tag")
    return nonce, ciphertext


class CryptoManager:
    """Handles all cryptographic operations for the vault."""

    def __init__(self):
        """Initialize the crypto manager."""
        self.ph = PasswordHasher(
            time_cost=config.ARGON2_TIME_COST,
            memory_cost=config.ARGON2_MEMORY_COST,
            parallelism=config.ARGON2_PARALLELISM,
            hash_len=config.KEY_SIZE,
            salt_len=config.ARGON2_HASH_SALT_SIZE,
            type=Type.ID
        )

    def generate_salt(self) -> bytes:
        """Generate a cryptographically secure random salt."""
        return os.urandom(config.SALT_SIZE)

    def generate_key(self) -> bytes:
        """Generate a random 256-bit data encryption key."""
        return AESGCM.generate_key(bit_length=config.KEY_SIZE * 8)

    def generate_nonce(self) -> bytes:
        return os.urandom(config.NONCE_SIZE)

    def derive_key(self, salt: bytes, passphrase: str) -> bytes:
        """
        Derive the key-encrypting key from a passphrase using Argon2id.

        The parameters are fixed in ``config``; changing them makes every
        existing vault impossible to unlock.

        Args:
            salt: Salt stored in the keyfile
            passphrase: The master passphrase

        Returns:
            32-byte key

        Raises:
            KdfError: If Argon2 fails internally
        """
        try:
            return hash_secret_raw(
                secret=passphrase.encode('utf-8'),
                salt=salt,
                time_cost=config.ARGON2_TIME_COST,
                memory_cost=config.ARGON2_MEMORY_COST,
                parallelism=config.ARGON2_PARALLELISM,
                hash_len=config.KEY_SIZE,
                type=Type.ID
            )
        except HashingError as e:
            raise KdfError(f"Error deriving key: {e}") from e

    def hash_secret(self, secret: str) -> str:
        """
        Hash a secret into a self-describing PHC string.

        The string carries the algorithm, its parameters and its own random
        salt, so verification needs nothing else.
        """
        try:
            return self.ph.hash(secret)
        except HashingError as e:
            raise KdfError(f"Failed to hash secret: {e}") from e

    def verify_secret(self, password_hash: str, secret: str) -> bool:
        """
        Check a secret against a PHC string produced by ``hash_secret``.

        Returns:
            True on match, False on mismatch

        Raises:
            HashParseError: If the stored hash cannot be parsed
        """
        try:
            extract_parameters(password_hash)
        except (InvalidHashError, ValueError) as e:
            raise HashParseError("Invalid password hash in keyfile") from e

        try:
            return self.ph.verify(password_hash, secret)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError) as e:
            raise HashParseError(f"Error verifying hash: {e}") from e

    def encrypt(self, plaintext: bytes, key: bytes) -> Tuple[bytes, bytes]:
        """
        Encrypt data using AES-256-GCM under a freshly generated nonce.

        Args:
            plaintext: Data to encrypt
            key: 32-byte encryption key

        Returns:
            Tuple of (nonce, ciphertext with appended tag)
        """
        nonce = self.generate_nonce()
        ciphertext = AESGCM(bytes(key)).encrypt(nonce, plaintext, None)
        return nonce, ciphertext

    def decrypt(self, ciphertext: bytes, key: bytes, nonce: bytes) -> bytes:
        """
        Decrypt data using AES-256-GCM.

        Raises:
            DecryptError: If authentication fails or the inputs are malformed
        """
        try:
            return AESGCM(bytes(key)).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecryptError("Authentication failed: data was tampered with or the key is wrong") from e
        except ValueError as e:
            raise DecryptError(f"Failed to decrypt data: {e}") from e

    def clear_bytes(self, data: bytearray) -> None:
        """Attempt to clear sensitive bytes from memory."""
        if isinstance(data, bytearray):
            for i in range(len(data)):
                data[i] = 0
