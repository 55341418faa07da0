from sqlalchemy import Column, DateTime, Index, Integer, String

from farmhelper.database import Base


class PendingUserEntry(Base):
    __tablename__ = "pending_users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_pending_users_expires_at", "expires_at"),)
