"""API routes for the FastAPI application."""

from granthub.api.router import TrailingSlashRouter
from granthub.api.v1.endpoints import contacts, groups, health

# Use our custom router that handles trailing slashes
api_router = TrailingSlashRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
