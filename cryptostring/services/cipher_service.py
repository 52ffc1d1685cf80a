import base64
import logging
import secrets
from abc import ABC, abstractmethod

from cryptostring.errors import (
    CryptoStringError,
    DecodeError,
    EmptyInputError,
    EncryptionError,
    UnsupportedAlgorithmError,
)
from cryptostring.schemas.cipher import (
    Algorithm,
    DecryptionResult,
    EncryptionConfig,
    EncryptionResult,
)
from cryptostring.utils.security import RandomSource, generate_key, generate_salt
from cryptostring.utils.timestamps import now_ms

logger = logging.getLogger("cryptostring.cipher")

DERIVED_KEY_MIN_LENGTH = 32
DEFAULT_CAESAR_SHIFT = 13
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str, error: str = "Invalid base64 input") -> bytes:
    try:
        return base64.b64decode("".join(text.split()), validate=True)
    except ValueError as exc:
        raise DecodeError(error) from exc


def _utf8(data: bytes, error: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(error) from exc


def xor_stream(data: bytes, key: bytes) -> bytes:
    """Position-varying XOR: ``out[i] = data[i] ^ key[i % len(key)] ^ (i % 256)``.

    Applying the stream twice with the same key restores the input.
    """
    if not key:
        raise EmptyInputError("Key cannot be empty")
    size = len(key)
    return bytes(b ^ key[i % size] ^ (i % 256) for i, b in enumerate(data))


def derive_key(key: str, salt: str | None = None) -> bytes:
    key_bytes = key.encode("utf-8")
    if not salt:
        return key_bytes
    if not key_bytes:
        raise EmptyInputError("Key cannot be empty")
    salt_bytes = salt.encode("utf-8")
    length = max(len(key_bytes), DERIVED_KEY_MIN_LENGTH)
    return bytes(
        key_bytes[i % len(key_bytes)] ^ salt_bytes[i % len(salt_bytes)] ^ (i % 256)
        for i in range(length)
    )


def _rotate(char: str, base: int, size: int, shift: int) -> str:
    return chr((ord(char) - base + shift) % size + base)


def caesar_shift(text: str, shift: int) -> str:
    out = []
    for char in text:
        if "A" <= char <= "Z":
            out.append(_rotate(char, 65, 26, shift))
        elif "a" <= char <= "z":
            out.append(_rotate(char, 97, 26, shift))
        elif "0" <= char <= "9":
            out.append(_rotate(char, 48, 10, shift))
        else:
            out.append(char)
    return "".join(out)


def _parse_base36(text: str) -> int | None:
    """Read a base-36 integer prefix the way JavaScript ``parseInt(text, 36)`` does.

    Returns None where JavaScript would produce NaN.
    """
    text = text.lstrip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    value = None
    for char in text.lower():
        digit = _BASE36_DIGITS.find(char)
        if digit < 0:
            break
        value = (value or 0) * 36 + digit
    return None if value is None else sign * value


def caesar_key_shift(key: str) -> int:
    value = _parse_base36(key[:2])
    if value is None:
        return DEFAULT_CAESAR_SHIFT
    # Remainder keeps the sign of the dividend.
    shift = abs(value) % 26
    if value < 0:
        shift = -shift
    return shift or DEFAULT_CAESAR_SHIFT


def hybrid_shift(key: str) -> int:
    if not key:
        raise EmptyInputError("Key cannot be empty")
    return ord(key[0]) % 26


class Cipher(ABC):
    algorithm: Algorithm
    accepts_salt = False
    decode_error = "Decryption failed"

    @abstractmethod
    def encrypt(self, plaintext: str, key: str, salt: str | None = None) -> str:
        ...

    @abstractmethod
    def decrypt(self, ciphertext: str, key: str, salt: str | None = None) -> str:
        ...


class Base64Cipher(Cipher):
    algorithm = Algorithm.BASE64
    decode_error = "Invalid Base64 encoded text"

    def encrypt(self, plaintext, key, salt=None):
        return b64encode(plaintext.encode("utf-8"))

    def decrypt(self, ciphertext, key, salt=None):
        return _utf8(b64decode(ciphertext, self.decode_error), self.decode_error)


class CaesarCipher(Cipher):
    algorithm = Algorithm.CAESAR

    def encrypt(self, plaintext, key, salt=None):
        return caesar_shift(plaintext, caesar_key_shift(key))

    def decrypt(self, ciphertext, key, salt=None):
        return caesar_shift(ciphertext, -caesar_key_shift(key))


class XorCipher(Cipher):
    algorithm = Algorithm.XOR
    # Salt is generated on request but the stream only uses the raw key.
    accepts_salt = True
    decode_error = "Invalid encrypted text or key for XOR decryption"

    def encrypt(self, plaintext, key, salt=None):
        return b64encode(xor_stream(plaintext.encode("utf-8"), key.encode("utf-8")))

    def decrypt(self, ciphertext, key, salt=None):
        raw = xor_stream(b64decode(ciphertext, self.decode_error), key.encode("utf-8"))
        return _utf8(raw, self.decode_error)


class AesLikeCipher(Cipher):
    """XOR stream keyed with the salt-derived key. Not AES."""

    algorithm = Algorithm.AES
    accepts_salt = True
    decode_error = "Invalid encrypted text or key for AES decryption"

    def encrypt(self, plaintext, key, salt=None):
        return b64encode(xor_stream(plaintext.encode("utf-8"), derive_key(key, salt)))

    def decrypt(self, ciphertext, key, salt=None):
        raw = xor_stream(b64decode(ciphertext, self.decode_error), derive_key(key, salt))
        return _utf8(raw, self.decode_error)


class HybridCipher(Cipher):
    """caesar -> xor -> aes-like, with raw bytes (no base64) between the stream layers."""

    algorithm = Algorithm.HYBRID
    accepts_salt = True
    decode_error = "Hybrid decryption failed - invalid encrypted text or key"

    def encrypt(self, plaintext, key, salt=None):
        shifted = caesar_shift(plaintext, hybrid_shift(key))
        xored = xor_stream(shifted.encode("utf-8"), key.encode("utf-8"))
        return b64encode(xor_stream(xored, derive_key(key, salt)))

    def decrypt(self, ciphertext, key, salt=None):
        xored = xor_stream(b64decode(ciphertext, self.decode_error), derive_key(key, salt))
        shifted = _utf8(xor_stream(xored, key.encode("utf-8")), self.decode_error)
        return caesar_shift(shifted, -hybrid_shift(key))


CIPHERS: dict[Algorithm, Cipher] = {
    cipher.algorithm: cipher
    for cipher in (AesLikeCipher(), CaesarCipher(), XorCipher(), Base64Cipher(), HybridCipher())
}


def resolve_algorithm(name) -> Algorithm:
    try:
        return Algorithm(name)
    except ValueError as exc:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm: {name}") from exc


def get_cipher(name) -> Cipher:
    return CIPHERS[resolve_algorithm(name)]


def encrypt(
    text: str,
    config: EncryptionConfig,
    random_bytes: RandomSource = secrets.token_bytes,
) -> EncryptionResult:
    if not text or not text.strip():
        raise EmptyInputError("Text to encrypt cannot be empty")
    cipher = get_cipher(config.algorithm)

    key = generate_key(config.key_length, random_bytes)
    salt = generate_salt(random_bytes) if config.use_salt and cipher.accepts_salt else None
    try:
        encrypted = cipher.encrypt(text, key, salt)
    except (CryptoStringError, ValueError) as exc:
        raise EncryptionError(f"Encryption failed: {exc}") from exc

    return EncryptionResult(
        encrypted=encrypted,
        key=key,
        algorithm=cipher.algorithm,
        timestamp=now_ms(),
        salt=salt,
    )


def decrypt(
    ciphertext: str,
    key: str,
    algorithm,
    salt: str | None = None,
) -> DecryptionResult:
    if not ciphertext or not ciphertext.strip():
        return DecryptionResult(success=False, error="Encrypted text cannot be empty")
    if not key or not key.strip():
        return DecryptionResult(success=False, error="Decryption key cannot be empty")

    try:
        cipher = get_cipher(algorithm)
    except UnsupportedAlgorithmError:
        return DecryptionResult(success=False, error=f"Unsupported decryption algorithm: {algorithm}")

    try:
        decrypted = cipher.decrypt(ciphertext, key, salt or None)
    except (CryptoStringError, ValueError) as exc:
        logger.info("%s decryption failed: %s", cipher.algorithm.value, exc)
        return DecryptionResult(success=False, error=str(exc))
    return DecryptionResult(decrypted=decrypted, success=True)
