"""Unit tests for ResponsePublisherService."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from rulepost.application.ports.document_store import Query
from rulepost.application.services.attachment_publication_service import (
    AttachmentPublicationService,
)
from rulepost.application.services.publish_follow_up_service import (
    PublishFollowUpService,
)
from rulepost.application.services.response_publisher_service import (
    ResponsePublisherService,
)
from rulepost.domain.errors import FailedPreconditionError
from rulepost.domain.models import document_paths
from rulepost.domain.models.enquiry import Enquiry, EnquiryStage
from rulepost.domain.models.publish_result import PublishFailReason
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar
from rulepost.infrastructure.stubs.attachment_store_stub import AttachmentStoreStub
from rulepost.infrastructure.stubs.in_memory_document_store import InMemoryDocumentStore
from tests.helpers import FakeTimeAuthority, seed_enquiry, seed_response, seed_user

ELAPSED = datetime(2026, 3, 2, 8, 59, tzinfo=timezone.utc)


async def _enquiry(store: InMemoryDocumentStore, enquiry_id: str = "enq1") -> Enquiry:
    snapshot = await store.get(document_paths.enquiry_path(enquiry_id))
    return Enquiry.from_snapshot(enquiry_id, snapshot.data or {})


def _response(store: InMemoryDocumentStore, response_id: str) -> dict:
    return store.dump()[document_paths.response_path("enq1", response_id)]


class TestTeamResponses:
    @pytest.mark.asyncio
    async def test_numbers_follow_shuffled_order(
        self,
        store: InMemoryDocumentStore,
        calendar: WorkingDayCalendar,
        fake_time: FakeTimeAuthority,
        follow_up: PublishFollowUpService,
    ) -> None:
        seed_enquiry(store, stage_ends=ELAPSED)
        for response_id, team in [("r1", "NZL"), ("r2", "ITA"), ("r3", "GBR")]:
            seed_response(store, "enq1", response_id, team=team)
        publisher = ResponsePublisherService(
            store, calendar, fake_time, follow_up, shuffle=lambda items: items.reverse()
        )

        result = await publisher.publish_responses("enq1", from_rc=False)

        assert result.success
        assert result.published_ids == ("r3", "r2", "r1")
        assert [_response(store, r)["responseNumber"] for r in ("r1", "r2", "r3")] == [3, 2, 1]
        assert all(_response(store, r)["isPublished"] for r in ("r1", "r2", "r3"))
        assert _response(store, "r1")["publishedAt"] == fake_time.now()

    @pytest.mark.asyncio
    async def test_numbers_are_a_permutation(
        self,
        store: InMemoryDocumentStore,
        calendar: WorkingDayCalendar,
        fake_time: FakeTimeAuthority,
        follow_up: PublishFollowUpService,
    ) -> None:
        seed_enquiry(store, stage_ends=ELAPSED)
        teams = ["NZL", "ITA", "GBR", "USA", "SUI"]
        for index, team in enumerate(teams):
            seed_response(store, "enq1", f"r{index}", team=team)
        publisher = ResponsePublisherService(
            store, calendar, fake_time, follow_up, shuffle=random.Random(3).shuffle
        )

        await publisher.publish_responses("enq1", from_rc=False)

        numbers = sorted(_response(store, f"r{i}")["responseNumber"] for i in range(5))
        assert numbers == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_opens_comment_window_one_day_longer(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage_ends=ELAPSED, stage_length=4)
        seed_response(store, "enq1", "r1")

        await response_publisher.publish_responses("enq1", from_rc=False)

        enquiry = await _enquiry(store)
        assert enquiry.stage is EnquiryStage.COMMENT_WINDOW
        assert enquiry.round_number == 1
        # Monday to Friday, 11:59 Rome
        assert enquiry.stage_ends == datetime(2026, 3, 6, 10, 59, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_removes_draft_markers_only_of_published(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage_ends=ELAPSED, round_number=2)
        seed_response(store, "enq1", "r1", team="NZL", round_number=2)
        seed_response(store, "enq1", "old", team="ITA", round_number=1)

        await response_publisher.publish_responses("enq1", from_rc=False)

        documents = store.dump()
        assert document_paths.draft_path("NZL", "r1") not in documents
        assert document_paths.draft_path("ITA", "old") in documents
        assert documents[document_paths.response_path("enq1", "old")]["isPublished"] is False

    @pytest.mark.asyncio
    async def test_deadline_not_reached_changes_nothing(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage_ends=ELAPSED + timedelta(hours=10))
        seed_response(store, "enq1", "r1")
        before = store.dump()

        result = await response_publisher.publish_responses("enq1", from_rc=False)

        assert result.fail_reason is PublishFailReason.STAGE_NOT_ENDED
        assert store.dump() == before

    @pytest.mark.asyncio
    async def test_no_pending_responses(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage_ends=ELAPSED)
        before = store.dump()

        result = await response_publisher.publish_responses("enq1", from_rc=False)

        assert not result.success
        assert result.fail_reason is PublishFailReason.NO_RESPONSE
        assert store.dump() == before

    @pytest.mark.asyncio
    async def test_wrong_stage_in_batch_mode_is_no_match(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage=EnquiryStage.COMMENT_WINDOW, stage_ends=ELAPSED)
        seed_response(store, "enq1", "r1")

        result = await response_publisher.publish_responses("enq1", from_rc=False)

        assert result.fail_reason is PublishFailReason.NO_ENQUIRY_MATCH

    @pytest.mark.asyncio
    async def test_missing_enquiry_is_no_match(
        self, response_publisher: ResponsePublisherService
    ) -> None:
        result = await response_publisher.publish_responses("ghost", from_rc=False)
        assert result.fail_reason is PublishFailReason.NO_ENQUIRY_MATCH

    @pytest.mark.asyncio
    async def test_wrong_stage_in_instant_mode_raises(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage=EnquiryStage.AWAITING_COMMITTEE, stage_ends=ELAPSED)

        with pytest.raises(FailedPreconditionError):
            await response_publisher.publish_responses(
                "enq1", from_rc=False, enforce_deadline=False
            )

    @pytest.mark.asyncio
    async def test_instant_mode_ignores_deadline(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage_ends=ELAPSED + timedelta(days=2))
        seed_response(store, "enq1", "r1")

        result = await response_publisher.publish_responses(
            "enq1", from_rc=False, enforce_deadline=False
        )

        assert result.published_count == 1
        assert (await _enquiry(store)).stage is EnquiryStage.COMMENT_WINDOW


class TestCommitteeResponses:
    @pytest.mark.asyncio
    async def test_rc_response_is_numbered_zero_and_opens_next_round(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage=EnquiryStage.AWAITING_COMMITTEE, stage_ends=ELAPSED)
        seed_response(store, "enq1", "rc1", team="RC", round_number=2, from_rc=True)

        result = await response_publisher.publish_responses("enq1", from_rc=True)

        assert result.published_ids == ("rc1",)
        assert _response(store, "rc1")["responseNumber"] == 0
        enquiry = await _enquiry(store)
        assert enquiry.stage is EnquiryStage.RESPOND_WINDOW
        assert enquiry.round_number == 2
        assert enquiry.stage_ends == datetime(2026, 3, 5, 18, 59, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_multiple_rc_responses_change_nothing(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage=EnquiryStage.AWAITING_COMMITTEE, stage_ends=ELAPSED)
        seed_response(store, "enq1", "rc1", team="RC", round_number=2, from_rc=True)
        seed_response(store, "enq1", "rc2", team="RC", round_number=2, from_rc=True)
        before = store.dump()

        result = await response_publisher.publish_responses("enq1", from_rc=True)

        assert result.fail_reason is PublishFailReason.MULTIPLE_RC_RESPONSES
        assert store.dump() == before

    @pytest.mark.asyncio
    async def test_concluding_response_closes_enquiry(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage=EnquiryStage.AWAITING_COMMITTEE, stage_ends=ELAPSED)
        seed_response(
            store,
            "enq1",
            "rc1",
            team="RC",
            round_number=2,
            from_rc=True,
            closesEnquiry=True,
            conclusion="The rake is legal.",
        )

        await response_publisher.publish_responses("enq1", from_rc=True)

        enquiry = await _enquiry(store)
        assert enquiry.stage is EnquiryStage.CLOSED
        assert enquiry.round_number == 2
        assert enquiry.conclusion == "The rake is legal."

    @pytest.mark.asyncio
    async def test_batch_mode_requires_awaiting_committee(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage=EnquiryStage.COMMENT_WINDOW, stage_ends=ELAPSED)
        seed_response(store, "enq1", "rc1", team="RC", round_number=2, from_rc=True)

        result = await response_publisher.publish_responses("enq1", from_rc=True)

        assert result.fail_reason is PublishFailReason.NO_ENQUIRY_MATCH

    @pytest.mark.asyncio
    async def test_instant_mode_publishes_from_comment_window(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_enquiry(store, stage=EnquiryStage.COMMENT_WINDOW, stage_ends=ELAPSED)
        seed_response(store, "enq1", "rc1", team="RC", round_number=2, from_rc=True)

        result = await response_publisher.publish_responses(
            "enq1", from_rc=True, enforce_deadline=False
        )

        assert result.success
        assert (await _enquiry(store)).round_number == 2


class TestFollowUp:
    @pytest.mark.asyncio
    async def test_unread_markers_and_publish_events(
        self, store: InMemoryDocumentStore, response_publisher: ResponsePublisherService
    ) -> None:
        seed_user(store, "u1")
        seed_enquiry(store, stage_ends=ELAPSED)
        seed_response(store, "enq1", "r1")

        await response_publisher.publish_responses("enq1", from_rc=False)

        documents = store.dump()
        response_marker = documents[document_paths.unread_path("u1", "r1")]
        assert response_marker["isUnread"] is True
        assert response_marker["parentId"] == "enq1"
        assert response_marker["postAlias"] == "RE #1 - Mast rake - Response 1.1"
        assert documents[document_paths.unread_path("u1", "enq1")]["hasUnreadChild"] is True

        events = await store.query(Query(document_paths.PUBLISH_EVENTS))
        assert len(events) == 1
        assert events[0].get("kind") == "response"
        assert events[0].get("responseId") == "r1"
        assert events[0].get("processed") is False

    @pytest.mark.asyncio
    async def test_attachments_get_public_links(
        self,
        store: InMemoryDocumentStore,
        attachment_store: AttachmentStoreStub,
        response_publisher: ResponsePublisherService,
    ) -> None:
        good = "enquiries/enq1/responses/r1/rake.pdf"
        bad = "enquiries/enq1/responses/r1/plan.pdf"
        attachment_store.add_object(good, 100, "application/pdf")
        attachment_store.add_object(bad, 100, "application/pdf")
        attachment_store.fail_make_public(bad)
        seed_enquiry(store, stage_ends=ELAPSED)
        seed_response(
            store,
            "enq1",
            "r1",
            attachments=[
                {"name": "rake.pdf", "path": good, "size": 100, "contentType": "application/pdf"},
                {"name": "plan.pdf", "path": bad, "size": 100, "contentType": "application/pdf"},
            ],
        )

        result = await response_publisher.publish_responses("enq1", from_rc=False)

        assert result.success
        stored = _response(store, "r1")["attachments"]
        assert stored[0]["token"] == attachment_store.public_link(good).token
        assert "token" not in stored[1]

    @pytest.mark.asyncio
    async def test_storage_outage_still_notifies(
        self,
        store: InMemoryDocumentStore,
        attachments: AttachmentPublicationService,
        response_publisher: ResponsePublisherService,
    ) -> None:
        seed_user(store, "u1")
        seed_enquiry(store, stage_ends=ELAPSED)
        seed_response(
            store,
            "enq1",
            "r1",
            attachments=[
                {
                    "name": "rake.pdf",
                    "path": "enquiries/enq1/responses/r1/rake.pdf",
                    "size": 100,
                    "contentType": "application/pdf",
                }
            ],
        )

        with patch.object(
            attachments, "publish", AsyncMock(side_effect=RuntimeError("storage down"))
        ):
            result = await response_publisher.publish_responses("enq1", from_rc=False)

        assert result.success
        assert store.dump()[document_paths.unread_path("u1", "r1")]["isUnread"] is True
        events = await store.query(Query(document_paths.PUBLISH_EVENTS))
        assert [event.get("responseId") for event in events] == ["r1"]
        assert "token" not in _response(store, "r1")["attachments"][0]
