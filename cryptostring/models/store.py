from sqlalchemy import Column, Text
from cryptostring.database import Base


class StoreEntry(Base):
    __tablename__ = "store_entries"

    key = Column(Text, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
