class CryptoStringError(Exception):
    """Base class for every error raised by the cipher engine and key vault."""


class EmptyInputError(CryptoStringError, ValueError):
    """Blank text, key or ciphertext at an API boundary."""


class UnsupportedAlgorithmError(CryptoStringError, ValueError):
    """Algorithm outside aes | caesar | xor | base64 | hybrid."""


class DecodeError(CryptoStringError, ValueError):
    """Ciphertext is not validly formed for the selected algorithm."""


class ValidationError(CryptoStringError, ValueError):
    """Stored key record failed structural validation."""


class EncryptionError(CryptoStringError):
    pass


class CodecDegradedError(CryptoStringError):
    """Vault payload fell back to plain base64 or to an empty list."""
