import json
import logging
from collections.abc import Mapping

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError

from cryptostring.config import settings
from cryptostring.errors import UnsupportedAlgorithmError, ValidationError
from cryptostring.schemas.cipher import Algorithm
from cryptostring.schemas.keys import ImportResult, StoredKey
from cryptostring.services.cipher_service import resolve_algorithm
from cryptostring.services.store_service import KeyValueStore
from cryptostring.services.vault_codec import VaultCodec
from cryptostring.utils.security import generate_key_id
from cryptostring.utils.timestamps import now_ms

logger = logging.getLogger("cryptostring.vault")

REQUIRED_FIELDS = ("id", "name", "key", "algorithm")
ALGORITHMS = {a.value for a in Algorithm}


def validate_record(key: StoredKey | Mapping) -> StoredKey:
    if isinstance(key, StoredKey):
        data = key.model_dump()
    elif isinstance(key, Mapping):
        data = dict(key)
    else:
        raise ValidationError("Invalid key data: expected a key record")

    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Invalid key data: missing {field}")
    try:
        data["algorithm"] = resolve_algorithm(data["algorithm"])
    except UnsupportedAlgorithmError as exc:
        raise ValidationError(f"Invalid key data: {exc}") from exc
    try:
        return StoredKey.model_validate(data)
    except SchemaValidationError as exc:
        raise ValidationError(f"Invalid key data: {exc.error_count()} invalid field(s)") from exc


def _from_storage(entry) -> StoredKey | None:
    if not isinstance(entry, dict):
        return None
    if not all(isinstance(entry.get(field), str) for field in REQUIRED_FIELDS):
        return None
    try:
        return StoredKey.model_validate(entry)
    except SchemaValidationError:
        return None


def _is_importable(entry) -> bool:
    return (
        isinstance(entry, dict)
        and isinstance(entry.get("name"), str)
        and isinstance(entry.get("key"), str)
        and entry["name"].strip() != ""
        and entry["key"].strip() != ""
        and isinstance(entry.get("algorithm"), str)
        and entry["algorithm"] in ALGORITHMS
    )


def _label(entry) -> str:
    if isinstance(entry, dict) and isinstance(entry.get("name"), str) and entry["name"]:
        return entry["name"]
    return "Unknown"


class KeyVault:
    """CRUD over the stored key list.

    Every operation is total: failures are logged and reported as False,
    None or an empty list so callers never need exception handling.
    """

    def __init__(self, store: KeyValueStore, codec: VaultCodec, payload_entry: str | None = None):
        self.store = store
        self.codec = codec
        self.payload_entry = payload_entry or settings.keys_entry

    def _persist(self, keys: list[StoredKey]) -> bool:
        payload = json.dumps([k.model_dump(mode="json") for k in keys], ensure_ascii=False)
        encoded = self.codec.encrypt_payload(payload)
        if encoded.value is None:
            logger.error("Could not encode vault payload: %s", encoded.error)
            return False
        self.store.set(self.payload_entry, encoded.value)
        return True

    def save_key(self, key: StoredKey | Mapping) -> bool:
        try:
            record = validate_record(key)
            keys = self.get_all_keys()
            now = now_ms()
            for index, existing in enumerate(keys):
                if existing.id == record.id:
                    keys[index] = record.model_copy(update={"created": existing.created, "used": now})
                    break
            else:
                keys.append(record.model_copy(update={
                    "created": record.created or now,
                    "used": record.used or now,
                }))
            return self._persist(keys)
        except (ValidationError, SQLAlchemyError) as exc:
            logger.error("Failed to save key: %s", exc)
            return False

    def get_all_keys(self) -> list[StoredKey]:
        try:
            encrypted = self.store.get(self.payload_entry)
        except SQLAlchemyError as exc:
            logger.error("Failed to read keys: %s", exc)
            return []
        if not encrypted:
            return []

        decoded = self.codec.decrypt_payload(encrypted)
        try:
            entries = json.loads(decoded.value)
        except (TypeError, ValueError, RecursionError) as exc:
            logger.error("Failed to parse keys: %s", exc)
            return []
        if not isinstance(entries, list):
            logger.error("Failed to parse keys: payload is not a list")
            return []
        return [k for k in (_from_storage(e) for e in entries) if k is not None]

    def get_key(self, key_id: str) -> StoredKey | None:
        if not key_id:
            return None
        return next((k for k in self.get_all_keys() if k.id == key_id), None)

    def name_taken(self, name: str) -> bool:
        wanted = name.strip().lower()
        return any(k.name.strip().lower() == wanted for k in self.get_all_keys())

    def delete_key(self, key_id: str) -> bool:
        if not key_id:
            return False
        try:
            return self._persist([k for k in self.get_all_keys() if k.id != key_id])
        except SQLAlchemyError as exc:
            logger.error("Failed to delete key: %s", exc)
            return False

    def update_key_usage(self, key_id: str) -> bool:
        key = self.get_key(key_id)
        if key is None:
            return False
        return self.save_key(key.model_copy(update={"used": now_ms()}))

    def use_key(self, key_id: str) -> StoredKey | None:
        """Fetch a key for decryption, stamping its last-used time."""
        if not self.update_key_usage(key_id):
            return None
        return self.get_key(key_id)

    def clear_all_keys(self) -> bool:
        try:
            self.store.remove(self.payload_entry)
        except SQLAlchemyError as exc:
            logger.error("Failed to clear keys: %s", exc)
            return False
        return True

    def export_keys(self) -> str:
        keys = self.get_all_keys()
        return json.dumps([k.model_dump(mode="json") for k in keys], indent=2, ensure_ascii=False)

    def import_keys(self, data: str) -> ImportResult:
        result = ImportResult()
        try:
            entries = json.loads(data)
        except (TypeError, ValueError, RecursionError) as exc:
            result.errors.append(f"Parse error: {exc}")
            return result
        if not isinstance(entries, list):
            result.errors.append("Invalid format: expected array of keys")
            return result

        for entry in entries:
            if not _is_importable(entry):
                result.errors.append(f"Invalid key structure: {_label(entry)}")
                continue
            # Imported ids are never reused.
            if self.save_key({**entry, "id": generate_key_id()}):
                result.imported += 1
            else:
                result.errors.append(f"Failed to save key: {_label(entry)}")

        result.success = result.imported > 0
        if result.errors:
            logger.warning("Key import finished with %d error(s)", len(result.errors))
        return result
