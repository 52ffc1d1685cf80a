from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from cryptostring.utils.security import clamp_key_length


class Algorithm(str, Enum):
    AES = "aes"
    CAESAR = "caesar"
    XOR = "xor"
    BASE64 = "base64"
    HYBRID = "hybrid"


class EncryptionConfig(BaseModel):
    algorithm: Algorithm | str
    key_length: int = 32
    use_salt: bool = False

    @field_validator("key_length")
    @classmethod
    def _clamp(cls, value: int) -> int:
        return clamp_key_length(value)


class EncryptionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    encrypted: str
    key: str
    algorithm: Algorithm
    timestamp: int
    salt: str | None = None


class DecryptionResult(BaseModel):
    decrypted: str = ""
    success: bool
    error: str | None = None


class EncryptRequest(BaseModel):
    text: str
    algorithm: str
    key_length: int = 32
    use_salt: bool = False
    save_as: str | None = None


class EncryptResponse(EncryptionResult):
    saved_key_id: str | None = None
    save_error: str | None = None


class DecryptRequest(BaseModel):
    encrypted: str
    key: str | None = None
    key_id: str | None = None
    algorithm: str | None = None
    salt: str | None = None


class DecryptionCodeResponse(BaseModel):
    code: str
