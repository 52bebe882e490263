import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, Float, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from app.database.connection import Base

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024


class Prompt(Base):
    __tablename__ = "prompts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    folder_id = Column(String(36), ForeignKey("folders.id"), nullable=True, index=True)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False, default="")
    is_favorite = Column(Boolean, nullable=False, default=False)
    # Id of one row in self.versions; no FK so prompt and version can be written in one flush
    current_version_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    versions = relationship(
        "PromptVersion",
        back_populates="prompt",
        order_by="PromptVersion.version_number",
    )
    tag_links = relationship(
        "PromptTag",
        order_by="PromptTag.position",
        cascade="all, delete-orphan",
    )

    @property
    def tags(self) -> list:
        """Tag ids in the order they were attached"""
        return [link.tag_id for link in self.tag_links]

    @property
    def current_version(self):
        for version in self.versions:
            if version.id == self.current_version_id:
                return version
        return None


class PromptVersion(Base):
    __tablename__ = "prompt_versions"
    __table_args__ = (
        UniqueConstraint("prompt_id", "version_number", name="uq_prompt_versions_number"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    prompt_id = Column(String(36), ForeignKey("prompts.id"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    content = Column(Text, nullable=False, default="")
    model = Column(String(64), nullable=False, default=DEFAULT_MODEL)
    temperature = Column(Float, nullable=False, default=DEFAULT_TEMPERATURE)
    max_tokens = Column(Integer, nullable=False, default=DEFAULT_MAX_TOKENS)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    prompt = relationship("Prompt", back_populates="versions")

    @property
    def model_settings(self) -> dict:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


class PromptTag(Base):
    __tablename__ = "prompt_tags"
    __table_args__ = (
        UniqueConstraint("prompt_id", "tag_id", name="uq_prompt_tags_pair"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    prompt_id = Column(String(36), ForeignKey("prompts.id"), nullable=False, index=True)
    tag_id = Column(String(36), ForeignKey("tags.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
