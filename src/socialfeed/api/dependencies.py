"""FastAPI dependencies that read shared state and the caller's identity."""

import uuid
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import Identity
from socialfeed.composer import ComposerSession, ComposerStore
from socialfeed.config.settings import get_settings
from socialfeed.observability import AuditLogger


def get_backend(request: Request) -> BackendClient:
    """Get the backend client from app state.

    Raises:
        HTTPException: If the backend client is not initialized.
    """
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise HTTPException(status_code=503, detail="Backend client not initialized")
    return backend


def get_composer_store(request: Request) -> ComposerStore:
    """Get the composer session store from app state."""
    store = getattr(request.app.state, "composer_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Composer store not initialized")
    return store


def get_identity(
    x_user_email: Annotated[str | None, Header(alias="X-User-Email")] = None,
    x_user_name: Annotated[str | None, Header(alias="X-User-Name")] = None,
    x_user_picture: Annotated[str | None, Header(alias="X-User-Picture")] = None,
) -> Identity:
    """Read the identity forwarded by the authenticating proxy.

    Raises:
        HTTPException: 401 if no identity was forwarded.
    """
    if not x_user_email:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return Identity(email=x_user_email, name=x_user_name or "", picture=x_user_picture or "")


def get_audit(
    identity: Annotated[Identity, Depends(get_identity)],
    x_request_id: Annotated[str | None, Header(alias="X-Request-ID")] = None,
) -> AuditLogger:
    """Create an audit logger for one request, correlated by X-Request-ID."""
    settings = get_settings()
    return AuditLogger(
        request_id=x_request_id or str(uuid.uuid4()),
        actor=identity.email,
        enabled=settings.audit_enabled,
    )


def get_owned_session(
    session_id: str,
    identity: Annotated[Identity, Depends(get_identity)],
    store: Annotated[ComposerStore, Depends(get_composer_store)],
) -> ComposerSession:
    """Get a composer session that belongs to the caller.

    Sessions owned by someone else are reported as missing.

    Raises:
        HTTPException: 404 if the session is unknown, expired or not owned.
    """
    session = store.get(session_id)
    if session is None or session.identity.email != identity.email:
        raise HTTPException(status_code=404, detail="Composer session not found")
    return session
