"""Shared path and query parameter parsing."""

from rulepost.domain.errors import InvalidArgumentError
from rulepost.domain.models.post import PostType


def parse_post_type(raw: str) -> PostType:
    """Map a path or query value to a PostType.

    Raises:
        InvalidArgumentError: Unknown post type.
    """
    try:
        return PostType(raw)
    except ValueError:
        raise InvalidArgumentError(f"Unknown post type '{raw}'.") from None
