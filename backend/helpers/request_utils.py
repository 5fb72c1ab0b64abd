"""
Request utilities for extracting client information.

Identifies the submitting client from the proxy headers set by the hosting
platform.
"""

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """
    Extract the client's IP address from the request.

    The site runs behind the hosting platform's proxy, so only proxy headers
    are trusted, in order of precedence:
    1. X-Forwarded-For (first IP)
    2. X-Real-IP

    Args:
        request: FastAPI request object

    Returns:
        Client IP address, or "unknown" when no header carries one
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the list is the original client
        first_ip = forwarded_for.split(",")[0].strip()
        if first_ip:
            return first_ip

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_CLIENT
