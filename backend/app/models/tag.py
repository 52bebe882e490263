import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime
from app.database.connection import Base


class Tag(Base):
    __tablename__ = "tags"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Stored trimmed and lowercased, so the unique index is case-insensitive
    name = Column(String(100), nullable=False, unique=True, index=True)
    color = Column(String(32), nullable=False, default="bg-sky-500")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @staticmethod
    def normalize_name(name: str) -> str:
        return name.strip().lower()
