from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, LargeBinary, String

from craftflow.database.base import Base


class CollectionBlob(Base):
    __tablename__ = "ledger_blobs"

    key = Column(String, primary_key=True)
    payload = Column(LargeBinary, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


__all__ = ["CollectionBlob"]
