from fastapi import APIRouter, Depends, HTTPException

from cryptostring.dependencies import get_key_vault
from cryptostring.errors import EmptyInputError, EncryptionError, UnsupportedAlgorithmError
from cryptostring.schemas.cipher import (
    DecryptionCodeResponse,
    DecryptionResult,
    DecryptRequest,
    EncryptionConfig,
    EncryptionResult,
    EncryptRequest,
    EncryptResponse,
)
from cryptostring.services import cipher_service
from cryptostring.services.codegen_service import generate_decryption_code
from cryptostring.services.key_vault import KeyVault
from cryptostring.utils.security import generate_key_id

router = APIRouter(tags=["cipher"])


@router.post("/encrypt", response_model=EncryptResponse)
async def encrypt_text(req: EncryptRequest, vault: KeyVault = Depends(get_key_vault)):
    name = req.save_as.strip() if req.save_as else None
    if name and vault.name_taken(name):
        raise HTTPException(status_code=409, detail="A key with this name already exists")

    config = EncryptionConfig(algorithm=req.algorithm, key_length=req.key_length, use_salt=req.use_salt)
    try:
        result = cipher_service.encrypt(req.text, config)
    except EmptyInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except UnsupportedAlgorithmError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except EncryptionError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    saved_key_id = save_error = None
    if name:
        key_id = generate_key_id()
        if vault.save_key({"id": key_id, "name": name, "key": result.key, "algorithm": result.algorithm}):
            saved_key_id = key_id
        else:
            save_error = "Text encrypted successfully, but failed to save key"
    return EncryptResponse(**result.model_dump(), saved_key_id=saved_key_id, save_error=save_error)


@router.post("/decrypt", response_model=DecryptionResult)
async def decrypt_text(req: DecryptRequest, vault: KeyVault = Depends(get_key_vault)):
    key, algorithm = req.key, req.algorithm
    if req.key_id:
        stored = vault.use_key(req.key_id)
        if stored is None:
            raise HTTPException(status_code=404, detail="Selected key not found")
        key, algorithm = stored.key, stored.algorithm
    return cipher_service.decrypt(req.encrypted, key or "", algorithm, req.salt)


@router.post("/decryption-code", response_model=DecryptionCodeResponse)
async def decryption_code(result: EncryptionResult):
    try:
        code = generate_decryption_code(result)
    except EmptyInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except UnsupportedAlgorithmError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return DecryptionCodeResponse(code=code)
