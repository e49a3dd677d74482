"""RFC 7807 problem details."""

from pydantic import BaseModel, Field


class ProblemDetailsResponse(BaseModel):
    """Error body returned for every business-rule failure.

    Attributes:
        type: Error type URI, urn:rulepost:error:<code>.
        title: Human-readable error title.
        status: HTTP status code.
        detail: Detailed error message.
        code: Stable reason code, e.g. "failed-precondition".
    """

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Human-readable error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(default="", description="Detailed error message")
    code: str = Field(..., description="Stable reason code")
