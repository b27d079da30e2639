"""
rate_limit.py — Global rate limiter instance.

Uses slowapi (a Starlette-compatible wrapper around the `limits` library).
Requests are keyed by client IP address.

Usage in routes:
    from fastapi import Request
    from hazard_alert.core.rate_limit import limiter

    @router.post("/some-endpoint")
    @limiter.limit("30/minute")
    async def my_endpoint(request: Request, payload: MyRequest):
        ...
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Hazard reports are anonymous, so the client IP is the only key available.
limiter = Limiter(key_func=get_remote_address)
