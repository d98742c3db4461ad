"""Composer endpoints: typing, mention suggestions, images and submission."""

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from socialfeed.api.dependencies import (
    get_audit,
    get_backend,
    get_composer_store,
    get_identity,
    get_owned_session,
)
from socialfeed.api.models import (
    ComposerView,
    MentionSelect,
    SubmitResult,
    SuggestionsView,
    TextUpdate,
    TitleUpdate,
)
from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import Identity
from socialfeed.composer import ComposerSession, ComposerStore
from socialfeed.errors import DirectoryUnavailable, SubmissionFailed
from socialfeed.observability import AuditLogger

logger = logging.getLogger(__name__)

composer_router = APIRouter(prefix="/api/composer", tags=["Composer"])

# Maximum accepted image upload size
MAX_IMAGE_BYTES = 10 * 1024 * 1024

OwnedSession = Annotated[ComposerSession, Depends(get_owned_session)]
Audit = Annotated[AuditLogger, Depends(get_audit)]


@composer_router.post("", status_code=201)
async def open_composer(
    identity: Annotated[Identity, Depends(get_identity)],
    backend: Annotated[BackendClient, Depends(get_backend)],
    store: Annotated[ComposerStore, Depends(get_composer_store)],
    audit: Audit,
) -> ComposerView:
    """Open an empty composer for the caller."""
    session = store.create(identity, backend)
    audit.log_composer_opened(session.session_id)
    return ComposerView.from_session(session)


@composer_router.get("/{session_id}")
async def get_composer(session: OwnedSession) -> ComposerView:
    """Current state of a composer, including the rendered preview."""
    return ComposerView.from_session(session)


@composer_router.delete("/{session_id}", status_code=204)
async def close_composer(
    session: OwnedSession,
    store: Annotated[ComposerStore, Depends(get_composer_store)],
    audit: Audit,
) -> Response:
    """Discard a composer and everything typed into it."""
    if session.submitting:
        raise HTTPException(status_code=409, detail="A submission is in progress")
    store.delete(session.session_id)
    audit.log_composer_closed(session.session_id)
    return Response(status_code=204)


@composer_router.put("/{session_id}/title")
async def update_title(session: OwnedSession, body: TitleUpdate) -> ComposerView:
    """Replace the post title."""
    session.set_title(body.title)
    return ComposerView.from_session(session)


@composer_router.put("/{session_id}/text")
async def update_text(session: OwnedSession, body: TextUpdate) -> ComposerView:
    """Apply a keystroke and re-detect the mention being typed."""
    try:
        session.update(body.content, body.caret)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return ComposerView.from_session(session)


@composer_router.get("/{session_id}/suggestions")
async def get_suggestions(session: OwnedSession) -> SuggestionsView:
    """Directory matches for the mention being typed.

    If the text changed while the lookup ran, the response is marked stale
    and carries no suggestions.
    """
    candidate = session.candidate
    results = await session.suggest()
    if results is None:
        return SuggestionsView(candidate=session.candidate, suggestions=[], stale=True)
    return SuggestionsView(candidate=candidate, suggestions=results)


@composer_router.post("/{session_id}/directory/refresh")
async def refresh_directory(session: OwnedSession, audit: Audit) -> dict:
    """Re-fetch the directory snapshot used for suggestions."""
    try:
        entries = await session.directory.refresh()
    except DirectoryUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    audit.log_directory_refreshed(session.session_id, len(entries))
    return {"entry_count": len(entries)}


@composer_router.post("/{session_id}/mentions")
async def select_mention(session: OwnedSession, body: MentionSelect, audit: Audit) -> ComposerView:
    """Commit a suggested user into the text at the caret."""
    await session.select_user(body.user_id)
    audit.log_mention_committed(session.session_id, body.user_id)
    return ComposerView.from_session(session)


@composer_router.put("/{session_id}/images/{filename}")
async def attach_image(session: OwnedSession, filename: str, request: Request) -> dict:
    """Attach an image; the request body is the raw image bytes."""
    session.check_image_capacity()
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty image upload")
    if len(data) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image too large")
    count = session.add_image(filename, data)
    logger.debug(
        "Attached image %s (%d bytes) to composer %s", filename, len(data), session.session_id
    )
    return {"image_count": count}


@composer_router.delete("/{session_id}/images/{index}")
async def detach_image(session: OwnedSession, index: int) -> dict:
    """Remove an attached image by position."""
    session.remove_image(index)
    return {"image_count": len(session.images)}


@composer_router.post("/{session_id}/submit")
async def submit_post(session: OwnedSession, audit: Audit) -> SubmitResult:
    """Submit the post, its images and its mentions."""
    audit.log_submission_started(
        session.session_id,
        mention_count=len(session.mentions),
        image_count=len(session.images),
    )
    start = time.monotonic()
    try:
        post_id = await session.submit()
    except SubmissionFailed as e:
        audit.log_submission_failed(session.session_id, str(e), post_id=e.post_id)
        raise

    audit.log_submission_succeeded(
        session.session_id,
        post_id=post_id,
        duration_ms=(time.monotonic() - start) * 1000,
    )
    return SubmitResult(post_id=post_id)
