# chirpy/models/refresh_token.py
from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from chirpy.core.base import Base


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    # The 64-char hex token value itself is the primary key; uniqueness is
    # enforced by the database, not by the application.
    token = Column(String(64), primary_key=True)

    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Absolute expiration for this refresh token
    expires_at = Column(DateTime(timezone=True), nullable=False)

    # If set, token is no longer valid. Rows are kept for audit.
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")
