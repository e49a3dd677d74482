"""Domain errors for Rule Post.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from RulePostError, except StageClockError which
is a ValueError for misuse of the stage clock.
"""

from rulepost.domain.errors.post import (
    AlreadyExistsError,
    DuplicateTeamResponseError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from rulepost.domain.errors.stage import (
    IllegalStageError,
    InvalidStageTransitionError,
    StageClockError,
)
from rulepost.domain.errors.store import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    DocumentStoreError,
    TransactionContentionError,
)

__all__: list[str] = [
    "AlreadyExistsError",
    "DocumentAlreadyExistsError",
    "DocumentNotFoundError",
    "DocumentStoreError",
    "DuplicateTeamResponseError",
    "FailedPreconditionError",
    "IllegalStageError",
    "InvalidArgumentError",
    "InvalidStageTransitionError",
    "NotFoundError",
    "PermissionDeniedError",
    "StageClockError",
    "TransactionContentionError",
    "UnauthenticatedError",
]
