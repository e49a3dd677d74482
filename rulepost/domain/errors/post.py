"""Caller-facing post and enquiry errors.

These errors are raised by the post submission transaction, the lifecycle
controller actions and the deletion flows. Each carries the reason code the
caller sees, so clients can explain a rejection to the user:

- invalid-argument: malformed payload, rejected before any write
- failed-precondition: wrong enquiry state or window, missing parent
- already-exists: duplicate team response for a round, unchanged setting
- permission-denied: caller role or attachment ownership mismatch
- not-found: addressed enquiry or post does not exist
- unauthenticated: no caller identity
"""

from __future__ import annotations

from rulepost.domain.exceptions import RulePostError


class InvalidArgumentError(RulePostError):
    """Raised when a request payload has the wrong shape.

    HTTP Status: 400 Bad Request
    """

    code = "invalid-argument"
    http_status = 400


class FailedPreconditionError(RulePostError):
    """Raised when the enquiry is not in a state that allows the action.

    Examples: enquiry closed, respond window shut, comment targets an RC
    response or an earlier round.

    HTTP Status: 412 Precondition Failed
    """

    code = "failed-precondition"
    http_status = 412


class AlreadyExistsError(RulePostError):
    """Raised when a create-only record already exists.

    The usual cause is a second response from the same team in the same
    round; the guard document `${team}_${round}` already exists.

    HTTP Status: 409 Conflict
    """

    code = "already-exists"
    http_status = 409


class DuplicateTeamResponseError(AlreadyExistsError):
    """Raised when a team has already submitted a response for a round.

    Attributes:
        team: The submitting team.
        round_number: The round the response would have belonged to.
    """

    def __init__(self, team: str, round_number: int) -> None:
        """Initialize the error.

        Args:
            team: The submitting team.
            round_number: The round already answered by this team.
        """
        self.team = team
        self.round_number = round_number
        super().__init__(
            f"Your team has already submitted a response for round {round_number}."
        )

    def to_rfc7807_dict(self) -> dict:
        """Serialize with the conflicting team and round."""
        result = super().to_rfc7807_dict()
        result["team"] = self.team
        result["round_number"] = self.round_number
        return result


class PermissionDeniedError(RulePostError):
    """Raised when the caller lacks the role or ownership for an action.

    HTTP Status: 403 Forbidden
    """

    code = "permission-denied"
    http_status = 403


class NotFoundError(RulePostError):
    """Raised when an addressed enquiry or post does not exist.

    HTTP Status: 404 Not Found
    """

    code = "not-found"
    http_status = 404


class UnauthenticatedError(RulePostError):
    """Raised when a request carries no caller identity.

    HTTP Status: 401 Unauthorized
    """

    code = "unauthenticated"
    http_status = 401
