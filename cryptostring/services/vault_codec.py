import json
import logging
import secrets
from dataclasses import dataclass
from enum import Enum

from cryptostring.config import settings
from cryptostring.errors import CodecDegradedError, DecodeError
from cryptostring.services.cipher_service import b64decode, b64encode, xor_stream
from cryptostring.services.store_service import KeyValueStore
from cryptostring.utils.security import RandomSource, generate_master_key

logger = logging.getLogger("cryptostring.vault")

EMPTY_VAULT = "[]"


class CodecStatus(str, Enum):
    OK = "ok"  # fully encrypted
    DEGRADED = "degraded"  # obfuscated only (plain base64)
    FAILED = "failed"  # unreadable, reset


@dataclass(frozen=True)
class CodecResult:
    value: str | None
    status: CodecStatus
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is CodecStatus.OK


def init_or_load_master_key(
    store: KeyValueStore,
    random_bytes: RandomSource = secrets.token_bytes,
    entry: str | None = None,
) -> str:
    entry = entry or settings.master_key_entry
    master_key = store.get(entry)
    if not master_key:
        master_key = generate_master_key(random_bytes)
        store.set(entry, master_key)
        logger.info("Generated a new vault master key.")
    return master_key


def _as_json(data: bytes) -> str:
    text = data.decode("utf-8")
    try:
        json.loads(text)
    except RecursionError as exc:
        raise DecodeError("Payload nests too deeply") from exc
    return text


class VaultCodec:
    """Encrypts the serialized key list with the master key.

    Each direction is an ordered list of strategies; the first one that
    succeeds wins and its status tags the result. Decoding never raises: the
    last strategy resets the vault to an empty list.
    """

    def __init__(self, master_key: str):
        self.master_key = master_key
        self._encoders = [
            ("master-key xor", self._xor_encode, CodecStatus.OK),
            ("plain base64", self._plain_encode, CodecStatus.DEGRADED),
        ]
        self._decoders = [
            ("master-key xor", self._xor_decode, CodecStatus.OK),
            ("plain base64", self._plain_decode, CodecStatus.DEGRADED),
            ("empty list", self._reset, CodecStatus.FAILED),
        ]

    def encrypt_payload(self, plaintext: str) -> CodecResult:
        return self._run(self._encoders, plaintext, "encryption")

    def decrypt_payload(self, ciphertext: str) -> CodecResult:
        return self._run(self._decoders, ciphertext, "decryption")

    def _xor_encode(self, plaintext: str) -> str:
        return b64encode(xor_stream(plaintext.encode("utf-8"), self.master_key.encode("utf-8")))

    def _plain_encode(self, plaintext: str) -> str:
        return b64encode(plaintext.encode("utf-8"))

    def _xor_decode(self, ciphertext: str) -> str:
        return _as_json(xor_stream(b64decode(ciphertext), self.master_key.encode("utf-8")))

    def _plain_decode(self, ciphertext: str) -> str:
        return _as_json(b64decode(ciphertext))

    def _reset(self, ciphertext: str) -> str:
        return EMPTY_VAULT

    def _run(self, strategies, payload: str, action: str) -> CodecResult:
        failures = []
        for name, strategy, status in strategies:
            try:
                value = strategy(payload)
            except ValueError as exc:
                failures.append(f"{name}: {exc}")
                continue
            if not failures:
                return CodecResult(value, status)
            error = CodecDegradedError(
                f"Vault {action} fell back to {name} ({'; '.join(failures)})"
            )
            logger.warning("%s", error)
            return CodecResult(value, status, str(error))

        error = CodecDegradedError(f"Vault {action} failed ({'; '.join(failures)})")
        logger.error("%s", error)
        return CodecResult(None, CodecStatus.FAILED, str(error))
