"""Stage machine and stage clock errors.

These are programming or data-integrity errors rather than caller
mistakes; they are never mapped to a business reason code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rulepost.domain.exceptions import RulePostError

if TYPE_CHECKING:
    from rulepost.domain.models.enquiry import EnquiryStage


class StageClockError(ValueError):
    """Raised when the stage clock is asked for a non-positive offset."""


class IllegalStageError(RulePostError):
    """Raised when stored flags or a requested transition break the stage machine.

    Attributes:
        enquiry_id: The enquiry whose stage is illegal.
    """

    def __init__(self, enquiry_id: str, message: str) -> None:
        """Initialize the error.

        Args:
            enquiry_id: The enquiry whose stage is illegal.
            message: Description of the violation.
        """
        self.enquiry_id = enquiry_id
        super().__init__(f"Enquiry {enquiry_id}: {message}")


class InvalidStageTransitionError(IllegalStageError):
    """Raised when a transition is not in the transition matrix.

    Attributes:
        from_stage: Current stage.
        to_stage: Requested stage.
    """

    def __init__(
        self,
        enquiry_id: str,
        from_stage: EnquiryStage,
        to_stage: EnquiryStage,
    ) -> None:
        """Initialize the error.

        Args:
            enquiry_id: The enquiry being transitioned.
            from_stage: Current stage.
            to_stage: Requested stage.
        """
        self.from_stage = from_stage
        self.to_stage = to_stage
        super().__init__(
            enquiry_id,
            f"cannot move from {from_stage.value} to {to_stage.value}",
        )
