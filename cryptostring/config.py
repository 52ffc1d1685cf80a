from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_path: Path = Path.home() / ".cryptostring"
    default_key_length: int = 32
    min_key_length: int = 16
    max_key_length: int = 64
    # Fixed store entries: one for the master key, one for the vault payload.
    master_key_entry: str = "cryptostring_master_key"
    keys_entry: str = "cryptostring_keys"
    api_prefix: str = "/api/v1"

    @property
    def db_path(self) -> Path:
        return self.data_path / "cryptostring.sqlite"

    model_config = {"env_prefix": "CRYPTOSTRING_"}


settings = Settings()
