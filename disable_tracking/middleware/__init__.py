"""
Middleware package for authentication, logging, and the tracking gate
"""
from .auth import (
    api_key_middleware,
    logging_middleware,
    verify_api_key,
    get_api_client,
    generate_api_key,
    add_api_key,
    remove_api_key,
    VALID_API_KEYS
)
from .gate import tracking_gate_middleware

__all__ = [
    "api_key_middleware",
    "logging_middleware",
    "tracking_gate_middleware",
    "verify_api_key",
    "get_api_client",
    "generate_api_key",
    "add_api_key",
    "remove_api_key",
    "VALID_API_KEYS"
]
