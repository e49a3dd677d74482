"""Structural validation of post submissions.

Runs before any read or write. Every failure is an InvalidArgumentError
whose message is shown to the caller verbatim.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rulepost.domain.errors import InvalidArgumentError, PermissionDeniedError
from rulepost.domain.models.post import Caller, PostSubmission, PostType, TempAttachment


def _coerce_attachment(raw: Any) -> TempAttachment:
    if not isinstance(raw, Mapping):
        raise InvalidArgumentError("Attachments must be objects.")
    size = raw.get("size")
    try:
        size = int(size) if size is not None else None
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError("Attachment size must be a number.") from exc
    content_type = raw.get("contentType")
    return TempAttachment(
        name=str(raw.get("name") or ""),
        storage_path=str(raw.get("storagePath") or ""),
        size=size,
        content_type=str(content_type) if content_type else None,
    )


def coerce_submission(raw: Mapping[str, Any]) -> PostSubmission:
    """Coerce and check a raw submission payload.

    Rules:
        - postType is one of enquiry, response, comment
        - responses carry exactly one parent id, comments exactly two
        - comments carry no attachments
        - enquiries and responses carry text or at least one attachment
        - closesEnquiry is only meaningful on responses

    Raises:
        InvalidArgumentError: The payload breaks one of the rules above.
    """
    try:
        post_type = PostType(raw.get("postType"))
    except ValueError as exc:
        raise InvalidArgumentError("Invalid or missing postType.") from exc

    title = str(raw.get("title") or "").strip()
    post_text = str(raw.get("postText") or "").strip()

    raw_parents = raw.get("parentIds") or []
    if not isinstance(raw_parents, (list, tuple)):
        raise InvalidArgumentError("parentIds must be a list.")
    parent_ids = tuple(str(parent).strip() for parent in raw_parents)
    if any(not parent for parent in parent_ids):
        raise InvalidArgumentError("parentIds must not contain empty ids.")

    raw_attachments = raw.get("attachments") or []
    if not isinstance(raw_attachments, (list, tuple)):
        raise InvalidArgumentError("attachments must be a list.")
    attachments = tuple(_coerce_attachment(item) for item in raw_attachments)

    if post_type is not PostType.COMMENT and not post_text and not attachments:
        raise InvalidArgumentError("Post must contain either text or an attachment.")
    if len(parent_ids) != post_type.parent_count:
        if post_type is PostType.RESPONSE:
            raise InvalidArgumentError("Response must contain one parentId.")
        if post_type is PostType.COMMENT:
            raise InvalidArgumentError("Comment must contain two parentIds.")
        raise InvalidArgumentError("Enquiry must not contain parentIds.")
    if post_type is PostType.COMMENT and attachments:
        raise InvalidArgumentError("Comments must not have attachments.")

    closes_enquiry = raw.get("closesEnquiry") is True
    if closes_enquiry and post_type is not PostType.RESPONSE:
        raise InvalidArgumentError("Only responses can close an enquiry.")
    conclusion = str(raw.get("conclusion") or "").strip() or None

    return PostSubmission(
        post_type=post_type,
        title=title,
        post_text=post_text,
        parent_ids=parent_ids,
        attachments=attachments,
        closes_enquiry=closes_enquiry,
        conclusion=conclusion if closes_enquiry else None,
    )


def check_submission_rights(caller: Caller, submission: PostSubmission) -> None:
    """Reject submissions the caller's role cannot make.

    Raises:
        PermissionDeniedError: A non-committee caller asked to close the enquiry.
    """
    if submission.closes_enquiry and not caller.is_rc:
        raise PermissionDeniedError("Only the Rules Committee can close an enquiry.")
