from sqlalchemy import Column, String, DateTime, Text, func
from vidbriefs.core.db import Base


class KeyValueEntry(Base):
    """
    SQLAlchemy ORM model backing the durable key-value store.

    Attributes:
        key (str): The storage key (Primary Key), e.g. 'conversationHistory'.
        value (str): The serialized blob, usually JSON.
        updated_at (datetime): Timestamp of the last write.
    """
    __tablename__ = "key_value_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
