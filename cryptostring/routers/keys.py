from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from cryptostring.config import settings
from cryptostring.dependencies import get_key_vault
from cryptostring.errors import UnsupportedAlgorithmError
from cryptostring.schemas.keys import (
    GeneratedKeyResponse,
    ImportRequest,
    ImportResult,
    StoredKey,
    StoredKeyCreate,
)
from cryptostring.services.cipher_service import resolve_algorithm
from cryptostring.services.key_vault import KeyVault
from cryptostring.utils.security import clamp_key_length, generate_key, generate_key_id

router = APIRouter(prefix="/keys", tags=["keys"])


@router.get("", response_model=list[StoredKey])
async def list_keys(vault: KeyVault = Depends(get_key_vault)):
    return vault.get_all_keys()


@router.post("", response_model=StoredKey, status_code=201)
async def add_key(req: StoredKeyCreate, vault: KeyVault = Depends(get_key_vault)):
    name, value = req.name.strip(), req.key.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Please enter a key name")
    if not value:
        raise HTTPException(status_code=400, detail="Please enter a key value")
    try:
        algorithm = resolve_algorithm(req.algorithm)
    except UnsupportedAlgorithmError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if vault.name_taken(name):
        raise HTTPException(status_code=409, detail="A key with this name already exists")

    key_id = generate_key_id()
    if not vault.save_key({"id": key_id, "name": name, "key": value, "algorithm": algorithm}):
        raise HTTPException(status_code=500, detail="Failed to save key")
    return vault.get_key(key_id)


@router.delete("")
async def clear_keys(vault: KeyVault = Depends(get_key_vault)):
    if not vault.clear_all_keys():
        raise HTTPException(status_code=500, detail="Failed to clear keys")
    return {"message": "All keys cleared"}


@router.get("/export")
async def export_keys(vault: KeyVault = Depends(get_key_vault)):
    filename = f"cryptostring_keys_{date.today().isoformat()}.json"
    return Response(
        content=vault.export_keys(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResult)
async def import_keys(req: ImportRequest, vault: KeyVault = Depends(get_key_vault)):
    return vault.import_keys(req.data)


@router.get("/generate", response_model=GeneratedKeyResponse)
async def generate(length: int = Query(default=settings.default_key_length)):
    length = clamp_key_length(length)
    return GeneratedKeyResponse(key=generate_key(length), length=length)


@router.get("/{key_id}", response_model=StoredKey)
async def get_key(key_id: str, vault: KeyVault = Depends(get_key_vault)):
    key = vault.get_key(key_id)
    if key is None:
        raise HTTPException(status_code=404, detail="Key not found")
    return key


@router.post("/{key_id}/usage", response_model=StoredKey)
async def record_usage(key_id: str, vault: KeyVault = Depends(get_key_vault)):
    key = vault.use_key(key_id)
    if key is None:
        raise HTTPException(status_code=404, detail="Key not found")
    return key


@router.delete("/{key_id}")
async def delete_key(key_id: str, vault: KeyVault = Depends(get_key_vault)):
    if not vault.delete_key(key_id):
        raise HTTPException(status_code=500, detail="Failed to delete key")
    return {"message": "Key deleted"}
