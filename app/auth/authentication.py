import hmac
import time
import fastapi

from app.config import CONFIG
from app.auth.signature import generate_signature


def authenticate_request(request: fastapi.Request) -> bool:
    """Check if request carries a fresh signature made with the shared secret

    Args:
        request (fastapi.Request): request

    Returns:
        bool: Whether request is authenticated or not
    """

    timestamp = request.headers.get("timestamp")
    signature = request.headers.get("sign")

    if not CONFIG.SECRET_KEY or not timestamp or not signature:
        return False

    if not _is_fresh(timestamp, CONFIG.SIGNATURE_TTL):
        return False

    generated_signature = generate_signature(timestamp, CONFIG.SECRET_KEY)

    return hmac.compare_digest(signature, generated_signature)


###########
# private #
###########


def _is_fresh(timestamp: str, ttl: int) -> bool:
    try:
        issued = float(timestamp)
    except ValueError:
        return False

    return abs(time.time() - issued) <= ttl
