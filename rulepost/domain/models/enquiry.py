"""Enquiry aggregate and its publication stage machine.

The stage is an explicit enum. The storage flags (isOpen, isPublished,
teamsCanRespond, teamsCanComment) are derived from it in `to_document()`
and parsed back in `from_snapshot()`; transition logic never re-derives
state from flag combinations.

Stage flow:
    AWAITING_PUBLISH -> RESPOND_WINDOW -> COMMENT_WINDOW -> AWAITING_COMMITTEE
    -> RESPOND_WINDOW (next round) -> ... -> CLOSED

CLOSED is terminal and reachable from every other stage.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from rulepost.domain.errors.stage import IllegalStageError, InvalidStageTransitionError


class EnquiryStage(Enum):
    """Current phase of an enquiry."""

    AWAITING_PUBLISH = "awaiting_publish"
    RESPOND_WINDOW = "respond_window"
    COMMENT_WINDOW = "comment_window"
    AWAITING_COMMITTEE = "awaiting_committee"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self is EnquiryStage.CLOSED


# Stages from which the committee may publish its response
COMMITTEE_PUBLISHABLE_STAGES: frozenset[EnquiryStage] = frozenset(
    {
        EnquiryStage.RESPOND_WINDOW,
        EnquiryStage.COMMENT_WINDOW,
        EnquiryStage.AWAITING_COMMITTEE,
    }
)

STAGE_TRANSITIONS: dict[EnquiryStage, frozenset[EnquiryStage]] = {
    EnquiryStage.AWAITING_PUBLISH: frozenset(
        {EnquiryStage.RESPOND_WINDOW, EnquiryStage.CLOSED}
    ),
    EnquiryStage.RESPOND_WINDOW: frozenset(
        {
            EnquiryStage.COMMENT_WINDOW,
            EnquiryStage.AWAITING_COMMITTEE,
            EnquiryStage.RESPOND_WINDOW,
            EnquiryStage.CLOSED,
        }
    ),
    EnquiryStage.COMMENT_WINDOW: frozenset(
        {
            EnquiryStage.AWAITING_COMMITTEE,
            EnquiryStage.RESPOND_WINDOW,
            EnquiryStage.CLOSED,
        }
    ),
    EnquiryStage.AWAITING_COMMITTEE: frozenset(
        {EnquiryStage.RESPOND_WINDOW, EnquiryStage.CLOSED}
    ),
    EnquiryStage.CLOSED: frozenset(),
}

DEFAULT_STAGE_LENGTH = 4


@dataclass(frozen=True, eq=True)
class Enquiry:
    """A rules enquiry with its stage state.

    Instances are immutable; transition methods return a new Enquiry.

    Attributes:
        enquiry_id: Document id.
        enquiry_number: Globally unique sequential number.
        title: Enquiry title.
        post_text: Enquiry body.
        stage: Current stage.
        is_published: Whether the enquiry itself has been published.
        round_number: Current round, starting at 1, never decreasing.
        stage_length: Working days per stage.
        stage_starts: When the current stage began.
        stage_ends: Deadline of the current stage.
        published_at: When the enquiry was published.
        conclusion: Closing statement, set when the enquiry is closed.
        from_rc: Whether the Rules Committee raised the enquiry.
    """

    enquiry_id: str
    enquiry_number: int
    title: str = ""
    post_text: str = ""
    stage: EnquiryStage = EnquiryStage.AWAITING_PUBLISH
    is_published: bool = False
    round_number: int = 1
    stage_length: int = DEFAULT_STAGE_LENGTH
    stage_starts: datetime | None = None
    stage_ends: datetime | None = None
    published_at: datetime | None = None
    conclusion: str | None = None
    from_rc: bool = False

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.round_number < 1:
            raise IllegalStageError(
                self.enquiry_id, f"round number must be >= 1, got {self.round_number}"
            )
        if self.stage_length < 1:
            raise IllegalStageError(
                self.enquiry_id, f"stage length must be >= 1, got {self.stage_length}"
            )
        if not self.is_published and self.stage not in (
            EnquiryStage.AWAITING_PUBLISH,
            EnquiryStage.CLOSED,
        ):
            raise IllegalStageError(
                self.enquiry_id,
                f"unpublished enquiry cannot be in stage {self.stage.value}",
            )

    # Derived flags

    @property
    def is_open(self) -> bool:
        return self.stage is not EnquiryStage.CLOSED

    @property
    def teams_can_respond(self) -> bool:
        return self.stage is EnquiryStage.RESPOND_WINDOW

    @property
    def teams_can_comment(self) -> bool:
        return self.stage is EnquiryStage.COMMENT_WINDOW

    @property
    def alias(self) -> str:
        """Human readable label used in notifications."""
        return f"RE #{self.enquiry_number} - {self.title}"

    def is_stage_elapsed(self, now: datetime) -> bool:
        """Check whether the current stage deadline has passed."""
        return self.stage_ends is not None and now >= self.stage_ends

    # Transitions

    def _transition(self, to_stage: EnquiryStage, **changes: Any) -> Enquiry:
        if to_stage not in STAGE_TRANSITIONS[self.stage]:
            raise InvalidStageTransitionError(self.enquiry_id, self.stage, to_stage)
        return replace(self, stage=to_stage, **changes)

    def publish(self, now: datetime, stage_ends: datetime) -> Enquiry:
        """Publish the enquiry and open the round's respond window."""
        return self._transition(
            EnquiryStage.RESPOND_WINDOW,
            is_published=True,
            published_at=now,
            stage_starts=now,
            stage_ends=stage_ends,
        )

    def open_comment_window(self, now: datetime, stage_ends: datetime) -> Enquiry:
        """Close responses and open comments on the published responses."""
        if self.stage is not EnquiryStage.RESPOND_WINDOW:
            raise InvalidStageTransitionError(
                self.enquiry_id, self.stage, EnquiryStage.COMMENT_WINDOW
            )
        return self._transition(
            EnquiryStage.COMMENT_WINDOW, stage_starts=now, stage_ends=stage_ends
        )

    def await_committee(self, now: datetime, stage_ends: datetime) -> Enquiry:
        """Shut both team windows and wait for the committee."""
        return self._transition(
            EnquiryStage.AWAITING_COMMITTEE, stage_starts=now, stage_ends=stage_ends
        )

    def open_next_round(self, now: datetime, stage_ends: datetime) -> Enquiry:
        """Advance the round after a committee response and reopen responses."""
        if self.stage not in COMMITTEE_PUBLISHABLE_STAGES:
            raise InvalidStageTransitionError(
                self.enquiry_id, self.stage, EnquiryStage.RESPOND_WINDOW
            )
        return self._transition(
            EnquiryStage.RESPOND_WINDOW,
            round_number=self.round_number + 1,
            stage_starts=now,
            stage_ends=stage_ends,
        )

    def conclude(self, conclusion: str | None) -> Enquiry:
        """Advance the round and close the enquiry with a committee conclusion."""
        if self.stage not in COMMITTEE_PUBLISHABLE_STAGES:
            raise InvalidStageTransitionError(
                self.enquiry_id, self.stage, EnquiryStage.CLOSED
            )
        return self._transition(
            EnquiryStage.CLOSED,
            round_number=self.round_number + 1,
            conclusion=conclusion or self.conclusion,
        )

    def close(self, conclusion: str | None = None) -> Enquiry:
        """Close the enquiry. Not time-gated."""
        return self._transition(
            EnquiryStage.CLOSED, conclusion=conclusion or self.conclusion
        )

    def with_stage_length(self, stage_length: int, stage_ends: datetime | None) -> Enquiry:
        """Return a copy with a new stage length and shifted deadline."""
        return replace(self, stage_length=stage_length, stage_ends=stage_ends)

    # Storage boundary

    def stage_fields(self) -> dict[str, Any]:
        """Storage flags and stage data, for partial updates."""
        fields: dict[str, Any] = {
            "isOpen": self.is_open,
            "isPublished": self.is_published,
            "teamsCanRespond": self.teams_can_respond,
            "teamsCanComment": self.teams_can_comment,
            "roundNumber": self.round_number,
            "stageLength": self.stage_length,
            "stageStarts": self.stage_starts,
            "stageEnds": self.stage_ends,
        }
        if self.published_at is not None:
            fields["publishedAt"] = self.published_at
        if self.conclusion is not None:
            fields["conclusion"] = self.conclusion
        return fields

    def to_document(self) -> dict[str, Any]:
        """Full public document for the enquiry."""
        document = {
            "title": self.title,
            "postText": self.post_text,
            "enquiryNumber": self.enquiry_number,
            "fromRC": self.from_rc,
        }
        document.update(self.stage_fields())
        return document

    @classmethod
    def from_snapshot(cls, enquiry_id: str, data: dict[str, Any]) -> Enquiry:
        """Parse a stored enquiry document.

        Raises:
            IllegalStageError: If both team windows are flagged open.
        """
        can_respond = data.get("teamsCanRespond") is True
        can_comment = data.get("teamsCanComment") is True
        if can_respond and can_comment:
            raise IllegalStageError(
                enquiry_id, "teamsCanRespond and teamsCanComment are both set"
            )

        is_published = data.get("isPublished") is True
        if data.get("isOpen") is not True:
            stage = EnquiryStage.CLOSED
        elif not is_published:
            stage = EnquiryStage.AWAITING_PUBLISH
        elif can_respond:
            stage = EnquiryStage.RESPOND_WINDOW
        elif can_comment:
            stage = EnquiryStage.COMMENT_WINDOW
        else:
            stage = EnquiryStage.AWAITING_COMMITTEE

        return cls(
            enquiry_id=enquiry_id,
            enquiry_number=int(data.get("enquiryNumber") or 0),
            title=str(data.get("title") or ""),
            post_text=str(data.get("postText") or ""),
            stage=stage,
            is_published=is_published,
            round_number=int(data.get("roundNumber") or 1),
            stage_length=int(data.get("stageLength") or DEFAULT_STAGE_LENGTH),
            stage_starts=data.get("stageStarts"),
            stage_ends=data.get("stageEnds"),
            published_at=data.get("publishedAt"),
            conclusion=data.get("conclusion"),
            from_rc=data.get("fromRC") is True,
        )
