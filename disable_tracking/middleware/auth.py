"""
Middleware for API endpoints - Authentication, Logging
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from typing import Callable, Optional
import logging
import time
import secrets
import os
from dotenv import load_dotenv

from ..services.site_registry import ApiClient

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Routes that need an API key. The tracking endpoint stays public.
PROTECTED_PREFIXES = ("/admin", "/sites")


def parse_site_ids(raw: Optional[str]) -> Optional[frozenset]:
    """
    Parse the API_KEY_<n>_SITES value.
    "*" or empty -> None (admin of every site), "1, 2" -> frozenset({1, 2})
    """
    if not raw or raw.strip() == "*":
        return None
    return frozenset(int(part) for part in raw.split(",") if part.strip())


# API key -> client, loaded from environment variables
VALID_API_KEYS: dict[str, ApiClient] = {}

# Load primary API key
api_key = os.getenv("API_KEY")
if api_key:
    VALID_API_KEYS[api_key] = ApiClient("Primary Client", parse_site_ids(os.getenv("API_KEY_SITES")))

# Load additional API keys (API_KEY_1, API_KEY_2, etc.)
for i in range(1, 10):
    key = os.getenv(f"API_KEY_{i}")
    name = os.getenv(f"API_KEY_{i}_NAME", f"Client {i}")
    if key:
        VALID_API_KEYS[key] = ApiClient(name, parse_site_ids(os.getenv(f"API_KEY_{i}_SITES")))

# Fallback for development (if no keys in .env)
if not VALID_API_KEYS:
    logger.warning("⚠️ No API keys found in .env file! Using default key for development.")
    VALID_API_KEYS["your-api-key-here"] = ApiClient("Development Client")


def verify_api_key(api_key: str) -> bool:
    """Verify if API key is valid"""
    return api_key in VALID_API_KEYS


def get_api_client(api_key: str) -> Optional[ApiClient]:
    """Get client from API key"""
    return VALID_API_KEYS.get(api_key)


async def api_key_middleware(request: Request, call_next: Callable):
    """
    Middleware to verify API key in request headers.
    Only applies to admin and site registry routes.
    """
    if not request.url.path.startswith(PROTECTED_PREFIXES):
        return await call_next(request)

    api_key = request.headers.get("X-API-Key") or request.headers.get("Authorization")

    if api_key and api_key.startswith("Bearer "):
        api_key = api_key.replace("Bearer ", "")

    if not api_key or not verify_api_key(api_key):
        client_host = request.client.host if request.client else "unknown"
        logger.warning(f"❌ Invalid API key attempt from {client_host}")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "error": "Invalid or missing API key",
                "message": "Please provide a valid API key in X-API-Key header"
            }
        )

    request.state.client = get_api_client(api_key)
    logger.info(f"✅ Authenticated: {request.state.client.name}")

    return await call_next(request)


async def logging_middleware(request: Request, call_next: Callable):
    """
    Middleware to log all requests and responses.
    Logs timing, status, and details.
    """
    start_time = time.time()

    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"📥 {request.method} {request.url.path} from {client_ip}")

    try:
        response = await call_next(request)

        duration = (time.time() - start_time) * 1000  # ms

        status_emoji = "✅" if response.status_code < 400 else "❌"
        logger.info(
            f"{status_emoji} {request.method} {request.url.path} "
            f"→ {response.status_code} ({duration:.0f}ms)"
        )

        response.headers["X-Process-Time"] = f"{duration:.2f}ms"

        return response

    except Exception as e:
        duration = (time.time() - start_time) * 1000
        logger.error(f"❌ {request.method} {request.url.path} → ERROR ({duration:.0f}ms): {str(e)}")
        raise


def generate_api_key() -> str:
    """Generate a new secure API key"""
    return secrets.token_urlsafe(32)


def add_api_key(key: str, client: ApiClient):
    """Add a new API key"""
    VALID_API_KEYS[key] = client
    logger.info(f"✅ Added API key for: {client.name}")


def remove_api_key(key: str):
    """Remove an API key"""
    if key in VALID_API_KEYS:
        client = VALID_API_KEYS.pop(key)
        logger.info(f"🗑️ Removed API key for: {client.name}")
        return True
    return False
