# wasatext/api/v1/router.py
from fastapi import APIRouter
from wasatext.api.v1 import session, users, conversations, messages, groups

# Create the main router
api_router = APIRouter()

# Include all the sub-routers
api_router.include_router(session.router, prefix="/session", tags=["session"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(conversations.router, prefix="/conversations", tags=["conversations"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
