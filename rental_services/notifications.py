"""
Owner notifications through the owner/tenant conversation.

Responsibility:
    Find (or create) the conversation between a property's owner and a
    tenant and append a message sent by the tenant.  Used for termination
    notices.

Invariants enforced:
    - One conversation per (owner, tenant, property); enforced by
      ``uq_conversation_participants``.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.logging_config import get_logger
from rental_kernel.models.conversation import ConversationModel, MessageModel
from rental_services.effects import NotifyOwner

logger = get_logger("services.notifications")


class ConversationNotifier:
    """Posts tenant messages to the owner's conversation."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def find_or_create_conversation(self, effect: NotifyOwner) -> ConversationModel:
        stmt = select(ConversationModel).where(
            ConversationModel.owner_id == effect.owner_id,
            ConversationModel.tenant_id == effect.tenant_id,
            ConversationModel.property_id == effect.property_id,
        )
        conversation = self._session.scalars(stmt).first()
        if conversation is not None:
            return conversation

        conversation = ConversationModel(
            owner_id=effect.owner_id,
            tenant_id=effect.tenant_id,
            property_id=effect.property_id,
            owner_name=effect.owner_name,
            tenant_name=effect.tenant_name,
            property_title=effect.property_title,
            created_by_id=effect.tenant_id,
        )
        self._session.add(conversation)
        self._session.flush()
        logger.info(
            "conversation_created",
            extra={
                "conversation_id": str(conversation.id),
                "property_id": str(effect.property_id),
            },
        )
        return conversation

    def notify(self, effect: NotifyOwner) -> UUID:
        """Append ``effect.text`` to the conversation; returns the message id."""
        now = self._clock.now()
        try:
            conversation = self.find_or_create_conversation(effect)
            message = MessageModel(
                conversation_id=conversation.id,
                sender_id=effect.tenant_id,
                sender_name=effect.tenant_name,
                text=effect.text,
                created_by_id=effect.tenant_id,
            )
            self._session.add(message)
            conversation.last_message_at = now
            self._session.flush()
            message_id = message.id
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "owner_notified",
            extra={
                "conversation_id": str(conversation.id),
                "message_id": str(message_id),
                "owner_id": str(effect.owner_id),
            },
        )
        return message_id
