"""Unit tests for AttachmentStoreStub."""

from __future__ import annotations

import pytest

from rulepost.infrastructure.stubs.attachment_store_stub import AttachmentStoreStub


@pytest.mark.asyncio
async def test_move_keeps_metadata(attachment_store: AttachmentStoreStub) -> None:
    attachment_store.add_object("responses_temp/u1/a.pdf", 10, "application/pdf")
    await attachment_store.move("responses_temp/u1/a.pdf", "enquiries/e1/responses/r1/a.pdf")
    assert not attachment_store.exists("responses_temp/u1/a.pdf")
    metadata = await attachment_store.get_metadata("enquiries/e1/responses/r1/a.pdf")
    assert metadata is not None
    assert metadata.size == 10


@pytest.mark.asyncio
async def test_move_missing_object_raises(attachment_store: AttachmentStoreStub) -> None:
    with pytest.raises(FileNotFoundError):
        await attachment_store.move("nope", "elsewhere")


@pytest.mark.asyncio
async def test_delete_prefix_stops_at_folder_boundary(
    attachment_store: AttachmentStoreStub,
) -> None:
    attachment_store.add_object("enquiries/e1/a.pdf", 1, "application/pdf")
    attachment_store.add_object("enquiries/e10/b.pdf", 1, "application/pdf")
    assert await attachment_store.delete_prefix("enquiries/e1") == 1
    assert attachment_store.exists("enquiries/e10/b.pdf")


@pytest.mark.asyncio
async def test_make_public_issues_token(attachment_store: AttachmentStoreStub) -> None:
    attachment_store.add_object("enquiries/e1/a.pdf", 1, "application/pdf")
    link = await attachment_store.make_public("enquiries/e1/a.pdf")
    assert link.token in link.url
    assert attachment_store.public_link("enquiries/e1/a.pdf") == link
