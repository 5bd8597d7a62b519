"""Generation backend: the HTTP service the conversation transport talks to."""

from .app import create_app, register_error_handlers
from .service import BackendRequest, GenerationService, parse_request, prepare_messages

__all__ = [
    "create_app",
    "register_error_handlers",
    "BackendRequest",
    "GenerationService",
    "parse_request",
    "prepare_messages",
]
