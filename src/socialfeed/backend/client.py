"""Async client for the hosted backend-as-a-service.

The backend exposes a PostgREST-style table API under ``/rest/v1`` and an
object store under ``/storage/v1``. This client maps the operations the
social feed needs onto those endpoints and converts failures into
:class:`BackendError`.
"""

import logging
import mimetypes
import time
from datetime import UTC, datetime
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from socialfeed.backend.models import DirectoryEntry, Identity, PostRecord
from socialfeed.backend.retry import RetryConfig, call_with_retry

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Constants
DEFAULT_TIMEOUT = 15.0  # seconds
REST_PREFIX = "/rest/v1"
STORAGE_PREFIX = "/storage/v1/object"
USER_COLUMNS = "id,name,email,picture,bio"
POST_COLUMNS = (
    "id,title,content,user_id,created_at,"
    "users:user_id(id,name,picture),post_images(image_url),tags(user_id)"
)


class BackendError(Exception):
    """Exception raised when a backend call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _in_filter(values: list[str]) -> str:
    quoted = ",".join('"{}"'.format(v.replace('"', '\\"')) for v in values)
    return f"in.({quoted})"


def _rows(response: httpx.Response, description: str) -> list[dict[str, Any]]:
    """Decode a PostgREST response body into a list of rows."""
    try:
        body = response.json()
    except ValueError as e:
        logger.error("Backend sent an undecodable body for %s: %s", description, e)
        raise BackendError(
            f"Invalid response for {description}: {response.text[:200]!r}",
            status_code=response.status_code,
        ) from e
    if not isinstance(body, list) or not all(isinstance(row, dict) for row in body):
        raise BackendError(
            f"Invalid response for {description}: expected a list of rows",
            status_code=response.status_code,
        )
    return body


def _parse(model: type[M], row: dict[str, Any]) -> M:
    try:
        return model.model_validate(row)
    except ValidationError as e:
        logger.error("Malformed %s row from backend: %s", model.__name__, e)
        raise BackendError(f"Malformed {model.__name__} row: {e}") from e


class BackendClient:
    """Async HTTP client for the hosted backend.

    Reads are retried with exponential backoff on transient failures; writes
    are sent exactly once.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        image_bucket: str = "post_images",
    ):
        """Initialize the backend client.

        Args:
            base_url: Root URL of the hosted backend project.
            api_key: Project API key, sent as ``apikey`` and bearer token.
            http_client: Optional shared HTTP client. If not provided,
                a new client will be created on first use.
            timeout: Request timeout in seconds.
            retry_config: Retry configuration for reads.
            image_bucket: Storage bucket that holds post images.
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._retry_config = retry_config or RetryConfig()
        self._image_bucket = image_bucket

    @property
    def base_url(self) -> str:
        """The backend root URL."""
        return self._base_url

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close the client and release resources."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request and raise BackendError for transport or HTTP errors."""
        client = await self._ensure_client()
        url = f"{self._base_url}{path}"

        logger.debug("Backend %s %s params=%s", method, path, params)

        try:
            response = await client.request(
                method,
                url,
                params=params,
                json=json,
                content=content,
                headers=self._headers(headers),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("Backend request timed out: %s %s: %s", method, path, e)
            raise BackendError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.error("Backend request failed: %s %s: %s", method, path, e)
            raise BackendError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            detail = self._error_detail(response)
            logger.error(
                "Backend returned error: %s %s status=%d, detail=%s",
                method,
                path,
                response.status_code,
                detail,
            )
            raise BackendError(
                f"Backend returned HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        return response

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            for key in ("message", "error", "msg"):
                if body.get(key):
                    return str(body[key])[:200]
        return str(body)[:200]

    # Table helpers

    async def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        async def attempt() -> list[dict[str, Any]]:
            response = await self._request("GET", f"{REST_PREFIX}/{table}", params=params)
            return _rows(response, f"select {table}")

        return await call_with_retry(attempt, self._retry_config, f"select {table}")

    async def _insert(
        self,
        table: str,
        row: dict[str, Any],
        params: dict[str, str] | None = None,
        prefer: str = "return=representation",
    ) -> list[dict[str, Any]]:
        response = await self._request(
            "POST",
            f"{REST_PREFIX}/{table}",
            params=params,
            json=[row],
            headers={"Prefer": prefer},
        )
        if not response.content:
            return []
        return _rows(response, f"insert {table}")

    async def _count(self, table: str, params: dict[str, str]) -> int:
        async def attempt() -> int:
            response = await self._request(
                "HEAD",
                f"{REST_PREFIX}/{table}",
                params={"select": "*", **params},
                headers={"Prefer": "count=exact"},
            )
            content_range = response.headers.get("Content-Range", "")
            _, _, total = content_range.partition("/")
            try:
                return int(total)
            except ValueError as e:
                raise BackendError(f"Missing row count for {table}: {content_range!r}") from e

        return await call_with_retry(attempt, self._retry_config, f"count {table}")

    # User directory

    async def list_users(self) -> list[DirectoryEntry]:
        """Fetch the full user directory in backend order."""
        rows = await self._select("users", {"select": USER_COLUMNS})
        return [_parse(DirectoryEntry, row) for row in rows]

    async def list_users_by_ids(self, user_ids: list[str]) -> list[DirectoryEntry]:
        """Fetch the users with the given ids."""
        if not user_ids:
            return []
        rows = await self._select(
            "users",
            {"select": USER_COLUMNS, "id": _in_filter(user_ids)},
        )
        return [_parse(DirectoryEntry, row) for row in rows]

    async def list_recent_users(self, limit: int = 5) -> list[DirectoryEntry]:
        """Fetch the most recently created users."""
        rows = await self._select(
            "users",
            {"select": USER_COLUMNS, "order": "created_at.desc", "limit": str(limit)},
        )
        return [_parse(DirectoryEntry, row) for row in rows]

    async def get_user_by_email(self, email: str) -> DirectoryEntry | None:
        """Look up a user by email, returning None when unknown."""
        rows = await self._select(
            "users",
            {"select": USER_COLUMNS, "email": f"eq.{email}", "limit": "1"},
        )
        if not rows:
            return None
        return _parse(DirectoryEntry, rows[0])

    async def upsert_user(self, identity: Identity) -> DirectoryEntry:
        """Create or update the directory row for an identity, keyed by email."""
        now = _now_iso()
        rows = await self._insert(
            "users",
            {
                "email": identity.email,
                "name": identity.name or identity.email,
                "picture": identity.picture,
                "created_at": now,
                "updated_at": now,
            },
            params={"on_conflict": "email"},
            prefer="resolution=merge-duplicates,return=representation",
        )
        if not rows:
            raise BackendError(f"Upsert of user {identity.email} returned no row")
        return _parse(DirectoryEntry, rows[0])

    async def update_profile(self, user_id: str, name: str, bio: str) -> DirectoryEntry:
        """Update a user's display name and bio."""
        response = await self._request(
            "PATCH",
            f"{REST_PREFIX}/users",
            params={"id": f"eq.{user_id}", "select": USER_COLUMNS},
            json={"name": name, "bio": bio, "updated_at": _now_iso()},
            headers={"Prefer": "return=representation"},
        )
        rows = _rows(response, "update users")
        if not rows:
            raise BackendError(f"User {user_id} not found", status_code=404)
        return _parse(DirectoryEntry, rows[0])

    # Posts

    async def create_post(
        self,
        title: str,
        content: str,
        author_id: str,
        created_at: datetime | None = None,
    ) -> str:
        """Insert a post and return its id."""
        rows = await self._insert(
            "posts",
            {
                "title": title,
                "content": content,
                "user_id": author_id,
                "created_at": (created_at or datetime.now(UTC)).isoformat(),
            },
        )
        if not rows or rows[0].get("id") is None:
            raise BackendError("Post insert returned no id")
        return str(rows[0]["id"])

    async def add_post_image(self, post_id: str, image_url: str) -> None:
        """Attach an uploaded image URL to a post."""
        await self._insert(
            "post_images",
            {"post_id": post_id, "image_url": image_url, "created_at": _now_iso()},
            prefer="return=minimal",
        )

    async def list_posts_by_authors(self, author_ids: list[str]) -> list[PostRecord]:
        """Fetch posts written by any of the authors, newest first."""
        if not author_ids:
            return []
        rows = await self._select(
            "posts",
            {
                "select": POST_COLUMNS,
                "user_id": _in_filter(author_ids),
                "order": "created_at.desc",
            },
        )
        return [_parse(PostRecord, row) for row in rows]

    # Mentions

    async def add_mention(self, post_id: str, user_id: str) -> None:
        """Record that a post mentions a user."""
        await self._insert(
            "tags",
            {"post_id": post_id, "user_id": user_id, "created_at": _now_iso()},
            prefer="return=minimal",
        )

    async def list_mentions_for_post(self, post_id: str) -> list[str]:
        """List the ids of users mentioned by a post, one per mention row."""
        rows = await self._select("tags", {"select": "user_id", "post_id": f"eq.{post_id}"})
        return [str(row["user_id"]) for row in rows]

    # Follow graph

    async def follow(self, follower_id: str, followee_id: str) -> None:
        """Make ``follower_id`` follow ``followee_id``."""
        await self._insert(
            "followers",
            {"follower_id": follower_id, "followee_id": followee_id, "created_at": _now_iso()},
            prefer="return=minimal",
        )

    async def unfollow(self, follower_id: str, followee_id: str) -> None:
        """Remove the follow edge from ``follower_id`` to ``followee_id``."""
        await self._request(
            "DELETE",
            f"{REST_PREFIX}/followers",
            params={"follower_id": f"eq.{follower_id}", "followee_id": f"eq.{followee_id}"},
        )

    async def list_followees(self, user_id: str) -> list[str]:
        """List the ids of users followed by ``user_id``."""
        rows = await self._select(
            "followers",
            {"select": "followee_id", "follower_id": f"eq.{user_id}"},
        )
        return [str(row["followee_id"]) for row in rows]

    async def count_followers(self, user_id: str) -> int:
        """Count users following ``user_id``."""
        return await self._count("followers", {"followee_id": f"eq.{user_id}"})

    async def count_following(self, user_id: str) -> int:
        """Count users followed by ``user_id``."""
        return await self._count("followers", {"follower_id": f"eq.{user_id}"})

    # Blob storage

    def public_url(self, object_name: str) -> str:
        """Public URL of an object in the image bucket."""
        return (
            f"{self._base_url}{STORAGE_PREFIX}/public/"
            f"{self._image_bucket}/{quote(object_name)}"
        )

    async def upload_image(self, data: bytes, filename: str) -> str:
        """Upload image bytes and return their public URL.

        The stored object name is prefixed with a millisecond timestamp so
        repeated uploads of the same filename do not collide.
        """
        object_name = f"{int(time.time() * 1000)}-{filename}"
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        await self._request(
            "POST",
            f"{STORAGE_PREFIX}/{self._image_bucket}/{quote(object_name)}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )

        logger.info("Uploaded image %s (%d bytes)", object_name, len(data))
        return self.public_url(object_name)
