"""Base exception classes for the Rule Post domain layer."""


class RulePostError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class.
    This enables consistent error handling across the application and
    lets the API layer map every business-rule failure to a reason code.

    Attributes:
        code: Stable machine-readable reason code surfaced to callers.
        http_status: HTTP status used when the error crosses the API.
    """

    code: str = "internal"
    http_status: int = 500

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)

    def to_rfc7807_dict(self) -> dict:
        """Serialize to RFC 7807 problem details format.

        Returns:
            Dictionary conforming to RFC 7807 problem details.
        """
        return {
            "type": f"urn:rulepost:error:{self.code}",
            "title": self.code.replace("-", " ").title(),
            "status": self.http_status,
            "detail": self.message,
            "code": self.code,
        }
