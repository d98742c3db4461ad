"""Tests for the hosted backend client."""

import json

import httpx
import pytest

from socialfeed.backend.client import BackendClient, BackendError
from socialfeed.backend.models import Identity
from socialfeed.backend.retry import RetryConfig

BASE_URL = "http://backend.test"


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response):
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(recorder: Recorder, **kwargs) -> BackendClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return BackendClient(
        base_url=BASE_URL,
        api_key="secret",
        http_client=http_client,
        retry_config=RetryConfig(max_attempts=3, base_delay_ms=1, max_delay_ms=1),
        **kwargs,
    )


USER_ROW = {"id": 1, "name": "Alice", "email": "alice@example.com", "picture": None, "bio": None}


class TestUsers:
    """Tests for user directory calls."""

    async def test_list_users(self):
        recorder = Recorder(httpx.Response(200, json=[USER_ROW]))
        client = make_client(recorder)

        users = await client.list_users()

        assert len(users) == 1
        assert users[0].user_id == "1"
        assert users[0].display_name == "Alice"
        assert users[0].avatar_url == ""
        request = recorder.last
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/users"
        assert request.headers["apikey"] == "secret"
        assert request.headers["Authorization"] == "Bearer secret"

    async def test_get_user_by_email(self):
        recorder = Recorder(httpx.Response(200, json=[USER_ROW]))
        client = make_client(recorder)

        user = await client.get_user_by_email("alice@example.com")

        assert user.email == "alice@example.com"
        assert recorder.last.url.params["email"] == "eq.alice@example.com"
        assert recorder.last.url.params["limit"] == "1"

    async def test_get_user_by_email_missing(self):
        client = make_client(Recorder(httpx.Response(200, json=[])))
        assert await client.get_user_by_email("nobody@example.com") is None

    async def test_list_users_by_ids(self):
        recorder = Recorder(httpx.Response(200, json=[USER_ROW]))
        client = make_client(recorder)

        await client.list_users_by_ids(["1", "2"])
        assert recorder.last.url.params["id"] == 'in.("1","2")'

    async def test_list_users_by_ids_empty_skips_request(self):
        recorder = Recorder(httpx.Response(500))
        client = make_client(recorder)

        assert await client.list_users_by_ids([]) == []
        assert recorder.requests == []

    async def test_upsert_user(self):
        recorder = Recorder(httpx.Response(201, json=[USER_ROW]))
        client = make_client(recorder)

        entry = await client.upsert_user(Identity(email="alice@example.com", name="Alice"))

        assert entry.user_id == "1"
        request = recorder.last
        assert request.method == "POST"
        assert request.url.params["on_conflict"] == "email"
        assert "merge-duplicates" in request.headers["Prefer"]
        body = json.loads(request.content)
        assert body[0]["email"] == "alice@example.com"
        assert body[0]["name"] == "Alice"

    async def test_update_profile(self):
        row = {**USER_ROW, "name": "Alicia", "bio": "hi"}
        recorder = Recorder(httpx.Response(200, json=[row]))
        client = make_client(recorder)

        entry = await client.update_profile("1", "Alicia", "hi")

        assert entry.display_name == "Alicia"
        assert entry.bio == "hi"
        assert recorder.last.method == "PATCH"
        assert recorder.last.url.params["id"] == "eq.1"


class TestPosts:
    """Tests for post calls."""

    async def test_create_post(self):
        recorder = Recorder(httpx.Response(201, json=[{"id": 42}]))
        client = make_client(recorder)

        post_id = await client.create_post("Title", "Body @Bob", "1")

        assert post_id == "42"
        body = json.loads(recorder.last.content)
        assert body[0]["title"] == "Title"
        assert body[0]["content"] == "Body @Bob"
        assert body[0]["user_id"] == "1"
        assert "created_at" in body[0]

    async def test_create_post_is_not_retried(self):
        recorder = Recorder(httpx.Response(503, json={"message": "unavailable"}))
        client = make_client(recorder)

        with pytest.raises(BackendError) as exc_info:
            await client.create_post("t", "c", "1")

        assert exc_info.value.status_code == 503
        assert len(recorder.requests) == 1

    async def test_list_posts_by_authors(self):
        row = {
            "id": 7,
            "title": "t",
            "content": "hi @Bob",
            "user_id": 2,
            "created_at": "2024-05-01T10:00:00+00:00",
            "users": {"id": 2, "name": "Carol", "picture": "http://img/c.png"},
            "post_images": [{"image_url": "http://cdn/x.png"}],
            "tags": [{"user_id": 3}, {"user_id": 3}],
        }
        recorder = Recorder(httpx.Response(200, json=[row]))
        client = make_client(recorder)

        posts = await client.list_posts_by_authors(["2"])

        assert len(posts) == 1
        post = posts[0]
        assert post.id == "7"
        assert post.author.display_name == "Carol"
        assert post.images[0].image_url == "http://cdn/x.png"
        assert post.mention_user_ids == ["3", "3"]
        params = recorder.last.url.params
        assert params["order"] == "created_at.desc"
        assert params["user_id"] == 'in.("2")'

    async def test_list_posts_no_authors(self):
        client = make_client(Recorder(httpx.Response(500)))
        assert await client.list_posts_by_authors([]) == []

    async def test_add_post_image(self):
        recorder = Recorder(httpx.Response(201))
        client = make_client(recorder)

        await client.add_post_image("7", "http://cdn/x.png")

        assert recorder.last.url.path == "/rest/v1/post_images"
        assert json.loads(recorder.last.content)[0]["image_url"] == "http://cdn/x.png"


class TestMentionsAndFollows:
    """Tests for mention rows and the follow graph."""

    async def test_add_mention(self):
        recorder = Recorder(httpx.Response(201))
        client = make_client(recorder)

        await client.add_mention("7", "3")

        assert recorder.last.url.path == "/rest/v1/tags"
        body = json.loads(recorder.last.content)[0]
        assert body["post_id"] == "7"
        assert body["user_id"] == "3"

    async def test_list_mentions_for_post(self):
        recorder = Recorder(httpx.Response(200, json=[{"user_id": 3}, {"user_id": 3}]))
        client = make_client(recorder)

        assert await client.list_mentions_for_post("7") == ["3", "3"]
        assert recorder.last.url.params["post_id"] == "eq.7"

    async def test_follow_and_unfollow(self):
        recorder = Recorder(httpx.Response(201))
        client = make_client(recorder)

        await client.follow("1", "2")
        assert recorder.last.method == "POST"
        assert recorder.last.url.path == "/rest/v1/followers"

        await client.unfollow("1", "2")
        assert recorder.last.method == "DELETE"
        assert recorder.last.url.params["follower_id"] == "eq.1"
        assert recorder.last.url.params["followee_id"] == "eq.2"

    async def test_list_followees(self):
        recorder = Recorder(httpx.Response(200, json=[{"followee_id": 2}, {"followee_id": 3}]))
        client = make_client(recorder)

        assert await client.list_followees("1") == ["2", "3"]

    async def test_counts(self):
        recorder = Recorder(httpx.Response(200, headers={"Content-Range": "*/5"}))
        client = make_client(recorder)

        assert await client.count_followers("1") == 5
        assert recorder.last.method == "HEAD"
        assert recorder.last.url.params["followee_id"] == "eq.1"
        assert recorder.last.headers["Prefer"] == "count=exact"

        assert await client.count_following("1") == 5
        assert recorder.last.url.params["follower_id"] == "eq.1"

    async def test_count_without_header(self):
        client = make_client(Recorder(httpx.Response(200)))
        with pytest.raises(BackendError):
            await client.count_followers("1")


class TestStorage:
    async def test_upload_image(self):
        recorder = Recorder(httpx.Response(200, json={"Key": "post_images/x"}))
        client = make_client(recorder, image_bucket="post_images")

        url = await client.upload_image(b"png", "cat.png")

        request = recorder.last
        assert request.method == "POST"
        assert request.url.path.startswith("/storage/v1/object/post_images/")
        assert request.url.path.endswith("-cat.png")
        assert request.headers["Content-Type"] == "image/png"
        assert request.content == b"png"
        assert url.startswith(f"{BASE_URL}/storage/v1/object/public/post_images/")
        assert url.endswith("-cat.png")


class TestErrors:
    """Tests for error translation and read retries."""

    async def test_http_error_message(self):
        client = make_client(Recorder(httpx.Response(403, json={"message": "permission denied"})))

        with pytest.raises(BackendError) as exc_info:
            await client.follow("1", "2")

        assert exc_info.value.status_code == 403
        assert "permission denied" in str(exc_info.value)

    async def test_reads_retried_on_5xx(self):
        recorder = Recorder(
            httpx.Response(503),
            httpx.Response(200, json=[USER_ROW]),
        )
        client = make_client(recorder)

        users = await client.list_users()

        assert len(users) == 1
        assert len(recorder.requests) == 2

    async def test_reads_not_retried_on_4xx(self):
        recorder = Recorder(httpx.Response(401, json={"message": "bad key"}))
        client = make_client(recorder)

        with pytest.raises(BackendError):
            await client.list_users()
        assert len(recorder.requests) == 1

    async def test_non_json_insert_body(self):
        client = make_client(Recorder(httpx.Response(201, text="<html>ok</html>")))

        with pytest.raises(BackendError, match="Invalid response for insert posts") as exc_info:
            await client.create_post("t", "c", "1")

        assert exc_info.value.status_code == 201

    async def test_non_list_select_body(self):
        client = make_client(Recorder(httpx.Response(200, json={"id": 1})))

        with pytest.raises(BackendError, match="expected a list of rows"):
            await client.list_users()

    async def test_malformed_row(self):
        client = make_client(Recorder(httpx.Response(200, json=[{"email": "x@example.com"}])))

        with pytest.raises(BackendError, match="Malformed DirectoryEntry row"):
            await client.get_user_by_email("x@example.com")

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = BackendClient(
            BASE_URL,
            http_client=http_client,
            retry_config=RetryConfig(max_attempts=2, base_delay_ms=1),
        )

        with pytest.raises(BackendError, match="Request failed"):
            await client.list_users()

    async def test_close_owned_client(self):
        client = BackendClient(BASE_URL)
        await client._ensure_client()
        await client.close()
        assert client._http_client is None
