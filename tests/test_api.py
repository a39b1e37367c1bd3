"""Tests for api.FeedApiClient against an in-process aiohttp server."""

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from api import FeedApiClient, _extract_error_message
from errors import MalformedResponseError, NetworkError, RejectedByServerError


async def list_posts(request):
    return web.json_response([{"id": 1, "auth": request.headers.get("Authorization")}])


async def query_likes(request):
    return web.json_response([{"post": request.query.get("post")}])


async def create_comment(request):
    body = await request.json()
    return web.json_response({"id": 9, **body}, status=201)


async def rejected(request):
    return web.json_response({"detail": "Invalid token."}, status=401)


async def html_error(request):
    return web.Response(
        text="<html><head><title>Server Error (500)</title></head><body></body></html>",
        status=500,
        content_type="text/html",
    )


async def not_json(request):
    return web.Response(text="<p>oops</p>", content_type="text/html")


async def empty(request):
    return web.Response(status=204)


async def image(request):
    return web.Response(body=b"\x89PNG", content_type="image/png")


async def bad_encoding(request):
    return web.Response(body=b'{"id": "\xff\xfe"}', content_type="application/json")


@pytest_asyncio.fixture
async def server():
    app = web.Application()
    app.router.add_get("/api/posts/", list_posts)
    app.router.add_get("/api/likes/", query_likes)
    app.router.add_post("/api/comments/", create_comment)
    app.router.add_get("/api/private/", rejected)
    app.router.add_get("/api/broken/", html_error)
    app.router.add_get("/api/html/", not_json)
    app.router.add_post("/api/empty/", empty)
    app.router.add_get("/api/latin/", bad_encoding)
    app.router.add_get("/media/cat.png", image)

    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest_asyncio.fixture
async def client(server):
    async with FeedApiClient(base_url=str(server.make_url("/api/"))) as api:
        yield api


class TestCall:
    @pytest.mark.asyncio
    async def test_get_with_token(self, client):
        body = await client.call("posts/", auth_token="abc")

        assert body == [{"id": 1, "auth": "Token abc"}]

    @pytest.mark.asyncio
    async def test_no_token_no_header(self, client):
        body = await client.call("posts/")

        assert body[0]["auth"] is None

    @pytest.mark.asyncio
    async def test_query_params(self, client):
        assert await client.call("likes/", params={"post": "p1"}) == [{"post": "p1"}]

    @pytest.mark.asyncio
    async def test_post_payload(self, client):
        body = await client.call("comments/", "POST", payload={"post": "p1", "content": "hi"})

        assert body == {"id": 9, "post": "p1", "content": "hi"}

    @pytest.mark.asyncio
    async def test_rejected_with_detail(self, client):
        with pytest.raises(RejectedByServerError) as exc_info:
            await client.call("private/")

        assert exc_info.value.status == 401
        assert exc_info.value.message == "Invalid token."

    @pytest.mark.asyncio
    async def test_rejected_html_page(self, client):
        with pytest.raises(RejectedByServerError) as exc_info:
            await client.call("broken/")

        assert exc_info.value.status == 500
        assert exc_info.value.message == "Server Error (500)"

    @pytest.mark.asyncio
    async def test_non_json_body(self, client):
        with pytest.raises(MalformedResponseError):
            await client.call("html/")

    @pytest.mark.asyncio
    async def test_invalid_utf8_body(self, client):
        with pytest.raises(MalformedResponseError):
            await client.call("latin/")

    @pytest.mark.asyncio
    async def test_empty_body(self, client):
        assert await client.call("empty/", "POST") is None

    @pytest.mark.asyncio
    async def test_fetch_bytes(self, client, server):
        data = await client.fetch_bytes(str(server.make_url("/media/cat.png")))

        assert data == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_fetch_bytes_missing(self, client, server):
        with pytest.raises(RejectedByServerError) as exc_info:
            await client.fetch_bytes(str(server.make_url("/media/dog.png")))

        assert exc_info.value.status == 404


class TestNetworkFailure:
    @pytest.mark.asyncio
    async def test_connection_refused(self, server):
        url = str(server.make_url("/api/"))
        await server.close()

        async with FeedApiClient(base_url=url, timeout=5) as api:
            with pytest.raises(NetworkError):
                await api.call("posts/")

    @pytest.mark.asyncio
    async def test_requires_session(self):
        with pytest.raises(RuntimeError):
            await FeedApiClient().call("posts/")


class TestErrorMessage:
    def test_field_errors(self):
        message = _extract_error_message('{"content": ["This field is required."]}', "application/json")

        assert message == "content: This field is required."

    def test_non_field_errors(self):
        message = _extract_error_message('{"non_field_errors": ["Unable to log in."]}', "application/json")

        assert message == "Unable to log in."

    def test_plain_text(self):
        assert _extract_error_message("Bad Gateway", "text/plain") == "Bad Gateway"
        assert _extract_error_message("", "text/plain") is None
