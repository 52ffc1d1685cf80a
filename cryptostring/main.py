import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cryptostring.config import settings
from cryptostring.database import SessionLocal, check_integrity, init_db
from cryptostring.routers import cipher, keys
from cryptostring.services.store_service import SqlKeyValueStore
from cryptostring.services.vault_codec import init_or_load_master_key

logger = logging.getLogger("cryptostring")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create the store, check it, and make sure a master key exists
    init_db(settings.db_path)
    result = check_integrity(settings.db_path)
    if result == "ok":
        logger.info("Database integrity check passed.")
    else:
        logger.error("DATABASE INTEGRITY CHECK FAILED: %s; key store may be corrupt.", result)

    db = SessionLocal()
    try:
        init_or_load_master_key(SqlKeyValueStore(db))
    finally:
        db.close()
    logger.info("Vault master key ready.")
    yield


app = FastAPI(
    title="CryptoString",
    description="Reversible text ciphers with an encrypted local key vault",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cipher.router, prefix=settings.api_prefix)
app.include_router(keys.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}
