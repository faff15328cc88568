"""
Business Logic Services Module

This module contains the host-facing services for Codeloop:
- Chat service: runs turns through the agent and keeps the session in sync
- Session service: durable snapshots, listing and resume

Services sit between the CLI host and the core agent loop.
"""

from .chat_service import (
    ChatService,
    Presenter,
)

from .session_service import (
    SessionSnapshot,
    SessionStore,
    SessionNotFoundError,
    generate_run_id,
    new_session,
    resume_session,
)

__all__ = [
    # Chat Service
    "ChatService",
    "Presenter",

    # Session Service
    "SessionSnapshot",
    "SessionStore",
    "SessionNotFoundError",
    "generate_run_id",
    "new_session",
    "resume_session",
]
