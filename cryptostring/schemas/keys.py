from pydantic import BaseModel

from cryptostring.schemas.cipher import Algorithm


class StoredKey(BaseModel):
    id: str
    name: str
    key: str
    algorithm: Algorithm
    created: int | None = None
    used: int | None = None


class StoredKeyCreate(BaseModel):
    name: str
    key: str
    algorithm: str


class ImportRequest(BaseModel):
    data: str


class ImportResult(BaseModel):
    success: bool = False
    imported: int = 0
    errors: list[str] = []


class GeneratedKeyResponse(BaseModel):
    key: str
    length: int
