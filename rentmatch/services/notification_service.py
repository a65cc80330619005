"""
Workflow event delivery.

The rental workflow only describes what happened; handlers decide how the
event reaches the two parties. The default handler stores each event as an
entry of the match's conversation so the chat service can broadcast it.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from rentmatch.db.mongodb import mongodb
from rentmatch.models.status_enums import WorkflowEventType
from rentmatch.models.workflow_event import WorkflowEvent

logger = logging.getLogger(__name__)

# Events that ask the other party to act render as interactive cards
ACTION_CARD_EVENTS = {WorkflowEventType.VIEWING_PROPOSED, WorkflowEventType.RENT_PROPOSED}

EVENT_TITLES = {
    WorkflowEventType.VIEWING_PROPOSED: "Viewing Proposal",
    WorkflowEventType.VIEWING_CONFIRMED: "Viewing Confirmed",
    WorkflowEventType.RENT_PROPOSED: "Rent Proposal",
    WorkflowEventType.RENT_PROPOSAL_RESOLVED: "Rent Proposal Closed",
    WorkflowEventType.PAYMENT_SUCCEEDED: "Payment Successful",
}


class WorkflowEventHandler(ABC):
    """Abstract base class for workflow event handlers"""

    @abstractmethod
    async def publish(self, event: WorkflowEvent) -> None:
        """Deliver one event"""


class ChatMessageEventHandler(WorkflowEventHandler):
    """Stores workflow events as conversation entries in ``chat_messages``"""

    async def publish(self, event: WorkflowEvent) -> None:
        db = mongodb.get_database()
        message = {
            "match_id": event.match_id,
            "sender_id": event.actor_id,
            "type": "ACTION_CARD" if event.type in ACTION_CARD_EVENTS else "SYSTEM",
            "content": EVENT_TITLES[event.type],
            "metadata": {"action": event.type.value, **event.payload},
            "is_read": False,
            "created_at": event.created_at,
        }
        result = await db.chat_messages.insert_one(message)
        logger.info("Stored %s event for match %s as message %s", event.type.value, event.match_id, result.inserted_id)


class WorkflowEventPublisher:
    """Fans events out to every registered handler"""

    def __init__(self, handlers: Optional[List[WorkflowEventHandler]] = None):
        self.handlers = handlers if handlers is not None else [ChatMessageEventHandler()]

    async def publish(self, event: WorkflowEvent) -> None:
        # Runs after commit; handler errors are logged only
        for handler in self.handlers:
            try:
                await handler.publish(event)
            except Exception as e:
                logger.error(
                    "Handler %s failed for %s on match %s: %s",
                    type(handler).__name__,
                    event.type.value,
                    event.match_id,
                    e,
                )
