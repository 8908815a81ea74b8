"""FastAPI dependencies resolving services and the calling identity."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from payproof.app import CheckoutServices
from payproof.domain.model import Requester, Role


def get_services(request: Request) -> CheckoutServices:
    return request.app.state.services


def get_requester(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Requester:
    """Identity asserted by the upstream authentication layer."""

    if not x_user_id:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Id header"
        ) from None
    try:
        role = Role((x_user_role or Role.USER).lower())
    except ValueError:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Role header"
        ) from None
    return Requester(user_id=user_id, role=role)


def require_admin(requester: Annotated[Requester, Depends(get_requester)]) -> Requester:
    if not requester.is_admin:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return requester


Services = Annotated[CheckoutServices, Depends(get_services)]
CurrentRequester = Annotated[Requester, Depends(get_requester)]
AdminRequester = Annotated[Requester, Depends(require_admin)]
