from datetime import datetime, UTC
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from rentmatch.models.status_enums import WorkflowEventType


class WorkflowEvent(BaseModel):
    """Rental workflow event handed to the chat/notification collaborator"""

    type: WorkflowEventType
    match_id: str
    # None for system events such as a confirmed payment
    actor_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
