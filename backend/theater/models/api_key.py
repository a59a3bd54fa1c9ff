"""
API key model for external booking integrations.

The plain key is shown once at creation; only a bcrypt hash is stored.
`key_prefix` narrows the candidate rows before the (slow) hash check.
"""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from theater.db.base import Base, TimestampMixin


class ApiKey(Base, TimestampMixin):
    __tablename__ = "api_keys"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    key_prefix = Column(String(16), nullable=False, index=True)
    key_hash = Column(String(255), nullable=False)
    permissions = Column(JSON, nullable=False, default=list)
    rate_limit = Column(Integer, nullable=False, default=100)  # requests per minute
    is_active = Column(Boolean, nullable=False, default=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, name={self.name})>"
