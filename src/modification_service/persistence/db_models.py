"""SQLAlchemy ORM models for conversation history."""

import uuid
from sqlalchemy import Boolean, Column, DateTime, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ModificationSummary(Base):
    """`modification_summaries` table: rolling conversation summaries per project."""
    __tablename__ = "modification_summaries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(String(255), nullable=False)
    session_id = Column(String(255), nullable=True)
    summary = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_modification_summaries_project_active", "project_id", "is_active"),
    )

    def __repr__(self):
        return f"<ModificationSummary(id={self.id}, project_id='{self.project_id}')>"


class ModificationRecord(Base):
    """`modification_records` table: one row per processed request."""
    __tablename__ = "modification_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(String(255), nullable=False, index=True)
    project_id = Column(String(255), nullable=True, index=True)
    prompt = Column(Text, nullable=False)
    approach = Column(String(50), nullable=False)
    success = Column(Boolean, nullable=False)
    selected_files = Column(JSONB, nullable=False, default=list)
    added_files = Column(JSONB, nullable=False, default=list)
    reasoning = Column(Text, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ModificationRecord(id={self.id}, approach='{self.approach}', success={self.success})>"
