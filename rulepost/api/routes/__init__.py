"""
API routes for Rule Post.

Available routers:
- health: Health check endpoints
- posts: Post submission and deletion
- drafts: The caller team's unpublished posts
- admin: Enquiry lifecycle actions for admins and the Rules Committee
"""

from rulepost.api.routes.admin import router as admin_router
from rulepost.api.routes.drafts import router as drafts_router
from rulepost.api.routes.health import router as health_router
from rulepost.api.routes.posts import router as posts_router

__all__: list[str] = ["admin_router", "drafts_router", "health_router", "posts_router"]
