# api/v1/router.py
from fastapi import APIRouter

from . import auth, content, dashboard, editor

api_router = APIRouter()

api_router.include_router(auth.router, tags=["Auth"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(content.router, prefix="/content", tags=["Content"])

# /add-content, /edit-exercise/{id}, /edit-meal/{id} and the editors they open
api_router.include_router(editor.router, tags=["Editor"])
