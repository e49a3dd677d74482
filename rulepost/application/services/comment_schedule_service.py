"""Next comment publication slot precompute.

Clients show when pending comments will next be published. The next
00:00 or 12:00 slot on a working day is stored in
`app_data/date_times.nextCommentPublicationTime`.
"""

from __future__ import annotations

from datetime import datetime

from structlog import get_logger

from rulepost.application.ports.document_store import DocumentStoreProtocol
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.config.schedule_config import COMMENT_PUBLICATION_SLOTS
from rulepost.domain.models import document_paths
from rulepost.domain.services.stage_clock import next_comment_publication_slot
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar

logger = get_logger(__name__)


class CommentScheduleService:
    def __init__(
        self,
        store: DocumentStoreProtocol,
        calendar: WorkingDayCalendar,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._store = store
        self._calendar = calendar
        self._time = time_authority

    async def refresh_next_publication_time(self) -> datetime:
        """Store and return the next comment publication slot."""
        next_slot = next_comment_publication_slot(
            self._time.now(), self._calendar, COMMENT_PUBLICATION_SLOTS
        )
        await self._store.set(
            document_paths.DATE_TIMES,
            {"nextCommentPublicationTime": next_slot},
            merge=True,
        )
        logger.info("next_comment_publication_time_set", next_slot=next_slot.isoformat())
        return next_slot
