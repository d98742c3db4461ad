"""Feed, follow and profile endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from socialfeed.api.dependencies import get_audit, get_backend, get_identity
from socialfeed.api.models import ProfileUpdate
from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import DirectoryEntry, Identity
from socialfeed.config.settings import get_settings
from socialfeed.errors import UserNotFound
from socialfeed.observability import AuditLogger
from socialfeed.social import (
    FeedPost,
    FeedService,
    FollowService,
    Profile,
    ProfileService,
    SuggestedUser,
    ensure_user,
)

social_router = APIRouter(prefix="/api", tags=["Social"])

Backend = Annotated[BackendClient, Depends(get_backend)]
CurrentIdentity = Annotated[Identity, Depends(get_identity)]
Audit = Annotated[AuditLogger, Depends(get_audit)]


async def _current_user(backend: BackendClient, identity: Identity) -> DirectoryEntry:
    user = await backend.get_user_by_email(identity.email)
    if user is None:
        raise UserNotFound(f"User not found: {identity.email}")
    return user


@social_router.post("/users/me")
async def sync_user(backend: Backend, identity: CurrentIdentity, audit: Audit) -> DirectoryEntry:
    """Create the caller's directory entry on first login."""
    user, created = await ensure_user(backend, identity)
    audit.log_user_synced(user.user_id, created=created)
    return user


@social_router.get("/feed")
async def get_feed(backend: Backend, identity: CurrentIdentity) -> list[FeedPost]:
    """Posts from the users the caller follows, newest first."""
    return await FeedService(backend).load_feed(identity.email)


@social_router.get("/users/suggested")
async def get_suggested_users(backend: Backend, identity: CurrentIdentity) -> list[SuggestedUser]:
    """Recently joined users with the caller's follow state."""
    user = await _current_user(backend, identity)
    limit = get_settings().suggested_users_limit
    return await FollowService(backend).suggested_users(user.user_id, limit=limit)


@social_router.put("/follows/{followee_id}", status_code=204)
async def follow_user(
    followee_id: str, backend: Backend, identity: CurrentIdentity, audit: Audit
) -> Response:
    """Follow a user."""
    user = await _current_user(backend, identity)
    await FollowService(backend).follow(user.user_id, followee_id)
    audit.log_follow_changed(user.user_id, followee_id, following=True)
    return Response(status_code=204)


@social_router.delete("/follows/{followee_id}", status_code=204)
async def unfollow_user(
    followee_id: str, backend: Backend, identity: CurrentIdentity, audit: Audit
) -> Response:
    """Stop following a user."""
    user = await _current_user(backend, identity)
    await FollowService(backend).unfollow(user.user_id, followee_id)
    audit.log_follow_changed(user.user_id, followee_id, following=False)
    return Response(status_code=204)


@social_router.post("/follows/{followee_id}/toggle")
async def toggle_follow(
    followee_id: str, backend: Backend, identity: CurrentIdentity, audit: Audit
) -> dict:
    """Follow or unfollow depending on the current state."""
    user = await _current_user(backend, identity)
    following = await FollowService(backend).toggle(user.user_id, followee_id)
    audit.log_follow_changed(user.user_id, followee_id, following=following)
    return {"following": following}


@social_router.get("/profile")
async def get_profile(backend: Backend, identity: CurrentIdentity) -> Profile:
    """The caller's profile, follow counts and own posts."""
    return await ProfileService(backend).get_profile(identity.email)


@social_router.patch("/profile")
async def update_profile(
    body: ProfileUpdate, backend: Backend, identity: CurrentIdentity, audit: Audit
) -> DirectoryEntry:
    """Edit the caller's display name and bio."""
    user = await _current_user(backend, identity)
    updated = await ProfileService(backend).update_profile(user.user_id, body.name, body.bio)
    audit.log_profile_updated(user.user_id)
    return updated
