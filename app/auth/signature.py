import hmac
import hashlib
import base64


def generate_signature(timestamp: str, key: str) -> str:
    """url-safe base64 of the hex HMAC-SHA256 of '{timestamp}:{key}'"""

    digest = hmac.new(
        key=key.encode("utf-8"),
        msg=f"{timestamp}:{key}".encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()

    return base64.urlsafe_b64encode(digest.encode("utf-8")).decode("utf-8")
