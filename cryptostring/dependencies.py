from fastapi import Depends
from sqlalchemy.orm import Session

from cryptostring.database import get_db
from cryptostring.services.key_vault import KeyVault
from cryptostring.services.store_service import SqlKeyValueStore
from cryptostring.services.vault_codec import VaultCodec, init_or_load_master_key


def get_key_vault(db: Session = Depends(get_db)) -> KeyVault:
    store = SqlKeyValueStore(db)
    codec = VaultCodec(init_or_load_master_key(store))
    return KeyVault(store, codec)
