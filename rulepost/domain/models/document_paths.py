"""Document addressing for the rules enquiry tree.

Layout:
    enquiries/{enquiryId}
    enquiries/{enquiryId}/meta/data
    enquiries/{enquiryId}/meta/response_guards/guards/{team}_{round}
    enquiries/{enquiryId}/responses/{responseId}
    enquiries/{enquiryId}/responses/{responseId}/meta/data
    enquiries/{enquiryId}/responses/{responseId}/comments/{commentId}
    drafts/posts/{team}/{postId}
    user_data/{uid}/unreadPosts/{postId}
    publishEvents/{eventId}
    app_data/counters
    app_data/date_times
"""

from __future__ import annotations

from rulepost.domain.models.post import PostType

ENQUIRIES = "enquiries"
RESPONSES = "responses"
COMMENTS = "comments"
USER_DATA = "user_data"
UNREAD_POSTS = "unreadPosts"
PUBLISH_EVENTS = "publishEvents"
COUNTERS = "app_data/counters"
DATE_TIMES = "app_data/date_times"


def join(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts)


def enquiry_path(enquiry_id: str) -> str:
    return join(ENQUIRIES, enquiry_id)


def responses_collection(enquiry_id: str) -> str:
    return join(enquiry_path(enquiry_id), RESPONSES)


def response_path(enquiry_id: str, response_id: str) -> str:
    return join(responses_collection(enquiry_id), response_id)


def comments_collection(enquiry_id: str, response_id: str) -> str:
    return join(response_path(enquiry_id, response_id), COMMENTS)


def comment_path(enquiry_id: str, response_id: str, comment_id: str) -> str:
    return join(comments_collection(enquiry_id, response_id), comment_id)


def post_path(post_type: PostType, parent_ids: tuple[str, ...], post_id: str) -> str:
    """Path of a post given its type and parent ids."""
    if post_type is PostType.ENQUIRY:
        return enquiry_path(post_id)
    if post_type is PostType.RESPONSE:
        return response_path(parent_ids[0], post_id)
    return comment_path(parent_ids[0], parent_ids[1], post_id)


def meta_path(document_path: str) -> str:
    """Private author record beside a post."""
    return join(document_path, "meta", "data")


def guard_key(team: str, round_number: int) -> str:
    return f"{team}_{round_number}"


def guard_path(enquiry_id: str, team: str, round_number: int) -> str:
    return join(
        enquiry_path(enquiry_id),
        "meta",
        "response_guards",
        "guards",
        guard_key(team, round_number),
    )


def drafts_collection(team: str) -> str:
    return join("drafts", "posts", team)


def draft_path(team: str, post_id: str) -> str:
    return join(drafts_collection(team), post_id)


def user_path(uid: str) -> str:
    return join(USER_DATA, uid)


def unread_collection(uid: str) -> str:
    return join(user_path(uid), UNREAD_POSTS)


def unread_path(uid: str, post_id: str) -> str:
    return join(unread_collection(uid), post_id)


def publish_event_path(event_id: str) -> str:
    return join(PUBLISH_EVENTS, event_id)


def attachment_folder(post_type: PostType, parent_ids: tuple[str, ...], post_id: str) -> str:
    """Final storage folder for a post's attachments."""
    return post_path(post_type, parent_ids, post_id)
