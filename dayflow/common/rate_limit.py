"""Rate limiting configuration using slowapi.

Module-level Limiter shared by the routers (per-endpoint limits on the
public auth endpoints) and wired into the FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Default: 60 requests/minute per client IP for all endpoints.
# Sign-up / sign-in override with @limiter.limit("N/period").
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
)
