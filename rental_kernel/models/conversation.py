"""
Module: rental_kernel.models.conversation
Responsibility:
    Owner/tenant conversations about a property and the messages appended to
    them.  Used by the owner notifier for termination notices.

Invariants enforced:
    - One conversation per (owner_id, tenant_id, property_id)
      (uq_conversation_participants).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import TrackedBase, UUIDString


class ConversationModel(TrackedBase):
    """A thread between a property owner and a tenant."""

    __tablename__ = "conversations"

    __table_args__ = (
        UniqueConstraint(
            "owner_id", "tenant_id", "property_id",
            name="uq_conversation_participants",
        ),
    )

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    property_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    owner_name: Mapped[str] = mapped_column(String(255), default="")
    tenant_name: Mapped[str] = mapped_column(String(255), default="")
    property_title: Mapped[str] = mapped_column(String(255), default="")
    last_message_at: Mapped[datetime | None] = mapped_column(nullable=True)


class MessageModel(TrackedBase):
    """A single message appended to a conversation."""

    __tablename__ = "messages"

    __table_args__ = (
        Index("idx_message_conversation", "conversation_id"),
    )

    conversation_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("conversations.id"),
        nullable=False,
    )
    sender_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    sender_name: Mapped[str] = mapped_column(String(255), default="")
    text: Mapped[str] = mapped_column(Text, nullable=False)
