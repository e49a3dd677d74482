"""
API layer - FastAPI routes and HTTP concerns for Rule Post.

This layer contains:
- FastAPI route definitions
- Request/Response DTOs
- HTTP middleware

IMPORT RULES:
- CAN import from: application, domain
- CANNOT import from: infrastructure directly (observability excepted)
- Services are resolved through rulepost.bootstrap
"""

__all__: list[str] = []
