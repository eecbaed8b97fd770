import uuid
from datetime import datetime
from typing import Any
from sqlalchemy import JSON, Boolean, DateTime, Float, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from armory.core.database import Base


class Weapon(Base):
    """
    id UUID PRIMARY KEY
    prompt TEXT NOT NULL
    share_id UUID UNIQUE  (set once, together with shared_at)
    created_at TIMESTAMPTZ DEFAULT NOW()
    """
    __tablename__ = "weapons"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    model_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    model_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    bug_level: Mapped[float | None] = mapped_column(Float, nullable=True)
    pitch_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    sale_success: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    tripo_task_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[Any | None] = mapped_column(
        "metadata",
        JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql"),
        nullable=True,
    )
    share_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    shared_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_shared(self) -> bool:
        return self.share_id is not None
