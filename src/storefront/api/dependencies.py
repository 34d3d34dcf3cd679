"""FastAPI dependencies: the calling principal and the lifecycle manager.

The identity provider sits in front of this service and forwards the
authenticated user in ``X-User-Id`` / ``X-User-Role`` headers.
"""

from fastapi import Header, HTTPException, Request

from storefront.ordering.lifecycle import OrderLifecycleManager
from storefront.principal import Principal


def get_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default="user"),
) -> Principal:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return Principal(user_id=x_user_id.strip(), role=(x_user_role or "user").strip().lower())


def get_lifecycle(request: Request) -> OrderLifecycleManager:
    return request.app.state.lifecycle
