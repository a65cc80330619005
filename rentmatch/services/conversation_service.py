"""
Conversation list ordering for matched pairs
"""

import logging
from typing import List, Optional

from rentmatch.db.match_repository import MatchRepository
from rentmatch.exceptions import AuthorizationError, NotFoundError
from rentmatch.models.match import Match
from rentmatch.models.status_enums import ENGAGED_STATUSES, ActorRole

logger = logging.getLogger(__name__)


class ConversationService:
    """Inbox of engaged matches, freshest first"""

    def __init__(self, matches: Optional[MatchRepository] = None):
        self.matches = matches or MatchRepository()

    async def list_conversations(self, user_id: str, role: ActorRole) -> List[Match]:
        field = "tenant_id" if role == ActorRole.TENANT else "landlord_id"
        return await self.matches.list_for_user(user_id, field, ENGAGED_STATUSES)

    async def record_chat_activity(self, match_id: str, user_id: str) -> None:
        """Called for every new chat message so the conversation moves to the top"""
        match = await self.matches.get(match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        if not match.is_party(user_id):
            raise AuthorizationError("You are not part of this match")

        if not await self.matches.touch(match.id):
            raise NotFoundError("Match", match_id)
        logger.debug("Chat activity on match %s by %s", match.id, user_id)
