import secrets
import uuid
from typing import Callable

from cryptostring.config import settings

KEY_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "!@#$%^&*()_+-=[]{}|;:,.<>?"
)
MASTER_KEY_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "!@#$%^&*()"
)
MASTER_KEY_LENGTH = 32
SALT_LENGTH = 16

RandomSource = Callable[[int], bytes]


def _pick(alphabet: str, length: int, random_bytes: RandomSource) -> str:
    raw = random_bytes(length)
    return "".join(alphabet[b % len(alphabet)] for b in raw)


def generate_key(length: int = 32, random_bytes: RandomSource = secrets.token_bytes) -> str:
    return _pick(KEY_ALPHABET, length, random_bytes)


def generate_salt(random_bytes: RandomSource = secrets.token_bytes) -> str:
    return generate_key(SALT_LENGTH, random_bytes)


def generate_master_key(random_bytes: RandomSource = secrets.token_bytes) -> str:
    return _pick(MASTER_KEY_ALPHABET, MASTER_KEY_LENGTH, random_bytes)


def generate_key_id() -> str:
    return str(uuid.uuid4())


def clamp_key_length(length: int) -> int:
    return max(settings.min_key_length, min(settings.max_key_length, length))
