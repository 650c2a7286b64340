from dataclasses import dataclass
from typing import Literal

from fastapi import Depends, Header, HTTPException, Request, WebSocket, WebSocketException, status

from app.services.context import ControlPlane


@dataclass(frozen=True)
class Principal:
    email: str
    role: Literal["admin", "client"]


def get_control_plane(request: Request) -> ControlPlane:
    return request.app.state.control_plane


def get_ws_control_plane(websocket: WebSocket) -> ControlPlane:
    return websocket.app.state.control_plane


def get_principal(
    x_user_email: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Principal:
    """
    The authentication middleware in front of this service sets these headers;
    they are trusted as-is.
    """
    if not x_user_email or not x_user_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    if x_user_role not in ("admin", "client"):
        raise HTTPException(status_code=403, detail="Unknown role")
    return Principal(email=x_user_email, role=x_user_role)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal


def require_ws_admin(
    x_user_email: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Principal:
    """Same trusted headers on the websocket handshake; anything but an admin is closed with 1008."""
    if not x_user_email or x_user_role != "admin":
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Admin access required")
    return Principal(email=x_user_email, role="admin")
