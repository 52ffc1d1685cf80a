from cryptostring.models.store import StoreEntry

__all__ = ["StoreEntry"]
