"""Normalized inbox item model.

Items arrive from several source systems (mail, chat, helpdesk) and are
normalized into a single shape before triage. The pipeline treats them as
read-only.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inbox_rank.utils import ensure_aware, utc_now


class ItemSource(str, Enum):
    """Origin system of an item."""

    EMAIL_MS365 = "email-ms365"
    EMAIL_GMAIL = "email-gmail"
    SLACK = "slack"
    TELEGRAM = "telegram"
    SDP_TICKET = "sdp-ticket"
    SDP_TASK = "sdp-task"

    @property
    def is_helpdesk(self) -> bool:
        return self.value.startswith("sdp-")


class ItemType(str, Enum):
    """Kind of work unit."""

    MESSAGE = "message"
    TICKET = "ticket"
    TASK = "task"


class ReadStatus(str, Enum):
    """Read/unread state as reported by the source."""

    UNREAD = "unread"
    READ = "read"


class Sender(BaseModel):
    """Sender information normalized across sources."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str | None = Field(default=None, description="Display name")
    address: str | None = Field(
        default=None, description="Email address, Slack handle or Telegram username"
    )
    user_id: str | None = Field(
        default=None, alias="userId", description="Source-specific user ID"
    )

    @property
    def display_name(self) -> str:
        return self.name or self.address or self.user_id or "Unknown"


class ContextMessage(BaseModel):
    """A prior message in the same thread."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime | None = Field(default=None, description="When the message was sent")
    sender: Sender = Field(default_factory=Sender, alias="from")
    body: str = Field(default="", description="Message text")

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None


class Item(BaseModel):
    """A normalized unit of inbound work from any source."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Unique ID, conventionally 'source:source_id'")
    source: ItemSource = Field(description="Source system")
    source_id: str = Field(alias="sourceId", description="Original ID in the source system")
    item_type: ItemType = Field(default=ItemType.MESSAGE, alias="itemType")
    timestamp: datetime = Field(description="When the item was created or sent")
    sender: Sender = Field(default_factory=Sender, alias="from")

    subject: str | None = Field(default=None, description="Subject or first line")
    body: str | None = Field(default=None, description="Full body content")
    body_preview: str | None = Field(
        default=None, alias="bodyPreview", description="Truncated body text"
    )

    thread_id: str | None = Field(default=None, alias="threadId")
    thread_context: list[ContextMessage] = Field(
        default_factory=list,
        alias="threadContext",
        description="Earlier messages in the thread, most recent last",
    )

    # Source-specific signals (dueDate, priority, channelType, attachments, ...).
    metadata: dict[str, Any] = Field(default_factory=dict)

    read_status: ReadStatus = Field(default=ReadStatus.UNREAD, alias="readStatus")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    # Stores and adapters emit null for "no thread" / "no metadata".
    @field_validator("thread_context", mode="before")
    @classmethod
    def _none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_to_empty_dict(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("timestamp", "created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return ensure_aware(v)
