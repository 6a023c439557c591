"""
Integration tests for WTTPHandler.fetch against the mock engine.

These tests drive the full flow (locator parsing, request building,
dispatch, confirmation and response reconstruction) through the
in-memory engine.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from wttp_client.address import calculate_address, to_hex
from wttp_client.constants import Charset, Location, Method, MimeType
from wttp_client.engine.backend import Receipt
from wttp_client.engine.mock import MockConnector, MockPendingTransaction, MockSiteEngine
from wttp_client.handler import WTTPHandler
from wttp_client.primitives import DataPointStructure, HeaderInfo, Redirect


HTML = {"Content-Type": "text/html; charset=utf-8", "Content-Location": "datapoint/chunk"}


async def put(handler: WTTPHandler, site: str, path: str, body: str, **kwargs):
    return await handler.fetch(f"wttp://{site}{path}", "PUT", HTML, body, **kwargs)


class TestPut:
    """Test PUT requests."""

    @pytest.mark.asyncio
    async def test_created_with_content_address(self, handler: WTTPHandler, site: str) -> None:
        """PUT answers 201 with the data point address as ETag."""
        response = await put(handler, site, "/index.html", "Hello World")

        expected = calculate_address(
            DataPointStructure(
                mime_type=MimeType.TEXT_HTML,
                charset=Charset.UTF_8,
                location=Location.DATAPOINT_CHUNK,
            ),
            "Hello World",
        )
        assert response.status == 201
        assert response.status_text == "Created"
        assert response.get_header("ETag") == to_hex(expected)
        assert response.get_header("ETag") == (
            "0x0a89cc52981f319e3550d7f6933c37aa33855d14bf376f8a7e9d68557c1ec1d1"
        )
        assert response.text() == "Hello World"

    @pytest.mark.asyncio
    async def test_registry_address_header(
        self, handler: WTTPHandler, site: str, engine: MockSiteEngine
    ) -> None:
        """The registry the site stores into is reported."""
        response = await put(handler, site, "/index.html", "Hello World")
        assert response.get_header("Registry-Address") == engine.registry

    @pytest.mark.asyncio
    async def test_missing_fields_never_reach_network(
        self, handler: WTTPHandler, site: str, engine: MockSiteEngine
    ) -> None:
        """A PUT without Content-Location is rejected locally."""
        response = await handler.fetch(
            f"wttp://{site}/index.html", "PUT", {"Content-Type": "text/html"}, "Hello"
        )
        assert response.status == 400
        assert response.text() == "Client Error: Content-Location is required for PUT requests"
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_name_is_resolved(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """A .eth host is resolved before dispatch."""
        response = await put(handler, "mysite.eth", "/index.html", "Hello World")
        assert response.status == 201
        assert ("put", site, "/index.html") in engine.calls

    @pytest.mark.asyncio
    async def test_forbidden_for_stranger(
        self, handler: WTTPHandler, site: str, stranger: str
    ) -> None:
        """Only the site owner may write."""
        response = await put(handler, site, "/index.html", "Hello World", identity=stranger)
        assert response.status == 403
        assert response.status_text == "Forbidden"


class TestRoyalty:
    """Test royalty loading for reused content."""

    @pytest.mark.asyncio
    async def test_new_content_is_free(self, handler: WTTPHandler, site: str) -> None:
        """Content nobody stored yet costs nothing."""
        address = calculate_address(
            DataPointStructure(mime_type=MimeType.TEXT_HTML, location=Location.DATAPOINT_CHUNK),
            "fresh",
        )
        assert await handler.load_royalty(site, address) == 0

    @pytest.mark.asyncio
    async def test_reuse_pays_first_publisher(
        self,
        handler: WTTPHandler,
        site: str,
        engine: MockSiteEngine,
        owner: str,
        stranger: str,
    ) -> None:
        """Storing known content credits its first publisher."""
        await put(handler, site, "/index.html", "Hello World")
        other_site = engine.create_site(stranger)

        response = await put(handler, other_site, "/copy.html", "Hello World", identity=stranger)

        assert response.status == 201
        assert engine.balances[owner.lower()] == len("Hello World") * engine.royalty_rate

    @pytest.mark.asyncio
    async def test_underpaid(
        self, handler: WTTPHandler, site: str, engine: MockSiteEngine, stranger: str
    ) -> None:
        """An underpaid write keeps the engine's 402 and reason."""
        await put(handler, site, "/index.html", "Hello World")
        other_site = engine.create_site(stranger)

        with patch.object(handler, "load_royalty", AsyncMock(return_value=0)):
            response = await put(handler, other_site, "/copy.html", "Hello World", identity=stranger)

        assert response.status == 402
        assert response.text() == "Royalty of 11000 required, 0 sent"


class TestChunks:
    """Test multi-chunk resources."""

    @pytest.mark.asyncio
    async def test_put_patch_patch_get(self, handler: WTTPHandler, site: str) -> None:
        """Chunks written by PUT and PATCH are returned in order."""
        url = f"wttp://{site}/index.html"
        parts = ["Hello World", ", from", " WTTP"]

        assert (await handler.fetch(url, "PUT", HTML, parts[0])).status == 201
        first = await handler.fetch(url, "PATCH", {"Range": "chunks=1"}, parts[1])
        second = await handler.fetch(url, "PATCH", {"Range": "chunks=2"}, parts[2])
        assert first.status == 200
        assert second.status == 200

        response = await handler.fetch(url, "GET", {"Range": "chunks=0-2"})
        assert response.status == 200
        assert response.text() == "".join(parts)

    @pytest.mark.asyncio
    async def test_partial_range(self, handler: WTTPHandler, site: str) -> None:
        """A bounded or open chunk range answers 206."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "a")
        await handler.fetch(url, "PATCH", {"Range": "chunks=1"}, "b")
        await handler.fetch(url, "PATCH", {"Range": "chunks=2"}, "c")

        middle = await handler.fetch(url, "GET", {"Range": "chunks=1-1"})
        assert middle.status == 206
        assert middle.text() == "b"

        tail = await handler.fetch(url, "GET", {"Range": "chunks=1-"})
        assert tail.status == 206
        assert tail.text() == "bc"

    @pytest.mark.asyncio
    async def test_patch_replaces_chunk(self, handler: WTTPHandler, site: str) -> None:
        """PATCH of chunk 0 overwrites the first chunk."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "old")
        await handler.fetch(url, "PATCH", {"Range": "chunks=0"}, "new")
        assert (await handler.fetch(url)).text() == "new"

    @pytest.mark.asyncio
    async def test_patch_etag_uses_resource_structure(self, handler: WTTPHandler, site: str) -> None:
        """A PATCH without Content-Type is addressed like the resource."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        response = await handler.fetch(url, "PATCH", {"Range": "chunks=1"}, "Hello, World!")

        expected = calculate_address(
            DataPointStructure(
                mime_type=MimeType.TEXT_HTML,
                charset=Charset.UTF_8,
                location=Location.DATAPOINT_CHUNK,
            ),
            "Hello, World!",
        )
        assert response.get_header("ETag") == to_hex(expected)

    @pytest.mark.asyncio
    async def test_patch_reused_content_with_partial_content_type(
        self, handler: WTTPHandler, site: str, engine: MockSiteEngine, owner: str
    ) -> None:
        """A charset-less Content-Type does not change the address a PATCH pays for."""
        await put(handler, site, "/a.html", "Hello World")
        await put(handler, site, "/b.html", "x")

        response = await handler.fetch(
            f"wttp://{site}/b.html",
            "PATCH",
            {"Range": "chunks=1", "Content-Type": "text/html"},
            "Hello World",
        )

        assert response.status == 200
        assert engine.balances[owner.lower()] == len("Hello World") * engine.royalty_rate
        assert (await handler.fetch(f"wttp://{site}/b.html")).text() == "xHello World"

    @pytest.mark.asyncio
    async def test_patch_missing_resource(self, handler: WTTPHandler, site: str) -> None:
        """PATCH of a missing resource answers 404."""
        response = await handler.fetch(f"wttp://{site}/nothing", "PATCH", {"Range": "chunks=1"}, "x")
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_patch_past_end(self, handler: WTTPHandler, site: str) -> None:
        """PATCH past the last chunk answers 416."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        response = await handler.fetch(url, "PATCH", {"Range": "chunks=5"}, "x")
        assert response.status == 416


class TestGet:
    """Test GET requests."""

    @pytest.mark.asyncio
    async def test_missing_path(self, handler: WTTPHandler, site: str) -> None:
        """A missing resource answers 404 with an empty body."""
        response = await handler.fetch(f"wttp://{site}/missing.html")
        assert response.status == 404
        assert response.text() == ""

    @pytest.mark.asyncio
    async def test_headers(self, handler: WTTPHandler, site: str) -> None:
        """GET rebuilds the HTTP headers from the metadata."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")

        response = await handler.fetch(url)
        assert response.status == 200
        assert response.get_header("Content-Type") == "text/html; charset=utf-8"
        assert response.get_header("Content-Length") == "11"
        assert response.get_header("Last-Modified") == "Tue, 14 Nov 2023 22:13:20 GMT"
        assert response.get_header("Allow") == "GET, HEAD, OPTIONS, TRACE, LOCATE"
        assert response.has_header("ETag")

    @pytest.mark.asyncio
    async def test_if_none_match(self, handler: WTTPHandler, site: str) -> None:
        """A matching ETag answers 304 with no body."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        etag = (await handler.fetch(url)).get_header("ETag")

        response = await handler.fetch(url, "GET", {"If-None-Match": etag})
        assert response.status == 304
        assert response.text() == ""

    @pytest.mark.asyncio
    async def test_if_none_match_stale(self, handler: WTTPHandler, site: str) -> None:
        """A stale ETag returns the resource."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        response = await handler.fetch(url, "GET", {"If-None-Match": "0x" + "ab" * 32})
        assert response.status == 200

    @pytest.mark.asyncio
    async def test_if_modified_since(self, handler: WTTPHandler, site: str) -> None:
        """An unchanged resource answers 304."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        response = await handler.fetch(url, "GET", {"If-Modified-Since": "1700000000"})
        assert response.status == 304

    @pytest.mark.asyncio
    async def test_range_not_satisfiable(self, handler: WTTPHandler, site: str) -> None:
        """A range past the end answers 416."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        response = await handler.fetch(url, "GET", {"Range": "chunks=5-10"})
        assert response.status == 416
        assert response.status_text == "Range Not Satisfiable"

    @pytest.mark.asyncio
    async def test_method_not_permitted(self, handler: WTTPHandler, site: str) -> None:
        """GET is refused once DEFINE drops it from the method mask."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        await handler.fetch(url, "DEFINE", header_info=HeaderInfo(methods=Method.HEAD.mask))

        response = await handler.fetch(url)
        assert response.status == 405

    @pytest.mark.asyncio
    async def test_redirect(self, handler: WTTPHandler, site: str) -> None:
        """A redirect code and Location are passed through."""
        url = f"wttp://{site}/old.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")
        await handler.fetch(url, "DEFINE", header_info=HeaderInfo(redirect=Redirect(301, "/new.html")))

        response = await handler.fetch(url)
        assert response.status == 301
        assert response.get_header("Location") == "/new.html"


class TestOtherMethods:
    """Test LOCATE, HEAD, DELETE and DEFINE."""

    @pytest.mark.asyncio
    async def test_locate(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """LOCATE lists the data point addresses as JSON."""
        url = f"wttp://{site}/index.html"
        put_response = await handler.fetch(url, "PUT", HTML, "Hello World")

        response = await handler.fetch(url, "LOCATE")
        assert response.status == 200
        assert response.json() == {
            "Registry-Address": engine.registry,
            "DataPoint-Addresses": [put_response.get_header("ETag")],
        }

    @pytest.mark.asyncio
    async def test_head_answers_method_not_allowed(
        self, handler: WTTPHandler, site: str, engine: MockSiteEngine
    ) -> None:
        """HEAD runs but answers 405 with the headers attached."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")

        response = await handler.fetch(url, "HEAD")
        assert response.status == 405
        assert response.text() == "Method Not Allowed"
        assert response.get_header("Content-Length") == "11"
        assert ("head", site, "/index.html") in engine.calls

    @pytest.mark.asyncio
    async def test_delete(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """DELETE removes the resource."""
        url = f"wttp://{site}/index.html"
        await handler.fetch(url, "PUT", HTML, "Hello World")

        await handler.fetch(url, "DELETE")
        assert ("delete", site, "/index.html") in engine.calls
        assert (await handler.fetch(url)).status == 404

    @pytest.mark.asyncio
    async def test_define_requires_header(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """DEFINE without a header is rejected locally."""
        response = await handler.fetch(f"wttp://{site}/index.html", "DEFINE")
        assert response.status == 400
        assert engine.calls == []


class TestRequestErrors:
    """Test requests rejected before dispatch."""

    @pytest.mark.asyncio
    async def test_invalid_method(
        self,
        handler: WTTPHandler,
        site: str,
        engine: MockSiteEngine,
        connector: MockConnector,
    ) -> None:
        """An unknown method is a client error and touches nothing."""
        response = await handler.fetch("wttp://mysite.eth/index.html", "FOO")
        assert response.status == 400
        assert response.text() == "Invalid method: FOO"
        assert engine.calls == []
        assert connector.connections == ["localhost"]

    @pytest.mark.asyncio
    async def test_unsupported_method(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """A known but undispatchable method answers 501."""
        response = await handler.fetch(f"wttp://{site}/index.html", "post")
        assert response.status == 501
        assert response.text() == "Request Error: Unsupported method: POST"
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_invalid_url(self, handler: WTTPHandler, engine: MockSiteEngine) -> None:
        """A locator without a host is a client error."""
        response = await handler.fetch("wttp://:polygon/index.html")
        assert response.status == 400
        assert response.text().startswith("Invalid URL:")
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_non_string_header_value(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """A header value that is not text is a client error."""
        response = await handler.fetch(f"wttp://{site}/index.html", "GET", {"Range": 5})
        assert response.status == 400
        assert response.text() == "Client Error: Header Range must be a string, got int"
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_non_string_header_name(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """Header names must be text."""
        response = await handler.fetch(f"wttp://{site}/index.html", "GET", {1: "chunks=1"})
        assert response.status == 400
        assert response.text() == "Client Error: Headers must map names to strings"
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_mapping_body(self, handler: WTTPHandler, site: str, engine: MockSiteEngine) -> None:
        """A body that is neither text nor bytes is a client error."""
        response = await handler.fetch(f"wttp://{site}/index.html", "PUT", HTML, {"a": 1})
        assert response.status == 400
        assert response.text() == "Client Error: Content must be text or bytes, got dict"
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_integer_body_is_not_stored(self, handler: WTTPHandler, site: str) -> None:
        """An integer body is rejected instead of being stored as zero bytes."""
        url = f"wttp://{site}/index.html"
        response = await handler.fetch(url, "PUT", HTML, 3)
        assert response.status == 400
        assert response.text() == "Client Error: Content must be text or bytes, got int"
        assert (await handler.fetch(url)).status == 404

    @pytest.mark.asyncio
    async def test_bytes_like_body(self, handler: WTTPHandler, site: str) -> None:
        """bytearray and memoryview bodies are stored as their bytes."""
        url = f"wttp://{site}/index.html"
        assert (await handler.fetch(url, "PUT", HTML, bytearray(b"Hello"))).status == 201
        assert (await handler.fetch(url, "PATCH", {"Range": "chunks=1"}, memoryview(b" World"))).status == 200
        assert (await handler.fetch(url)).text() == "Hello World"


class TestFailures:
    """Test how engine failures surface."""

    @pytest.mark.asyncio
    async def test_unexpected_exception(
        self, handler: WTTPHandler, site: str, engine: MockSiteEngine
    ) -> None:
        """Any other engine failure answers 500 with its message."""
        with patch.object(engine, "get", AsyncMock(side_effect=RuntimeError("boom"))):
            response = await handler.fetch(f"wttp://{site}/index.html")
        assert response.status == 500
        assert response.text() == "boom"

    @pytest.mark.asyncio
    async def test_missing_success_event(
        self, handler: WTTPHandler, site: str, engine: MockSiteEngine
    ) -> None:
        """A receipt without the success event is a protocol violation."""
        tx = MockPendingTransaction(Receipt())
        with patch.object(engine, "delete", AsyncMock(return_value=tx)):
            response = await handler.fetch(f"wttp://{site}/index.html", "DELETE")
        assert response.status == 500
        assert response.text() == "Protocol violation: DELETESuccess event missing from receipt"

    @pytest.mark.asyncio
    async def test_unknown_network(self, handler: WTTPHandler, site: str) -> None:
        """An unknown network selector answers 500 and leaves the default alone."""
        response = await handler.fetch(f"wttp://{site}:atlantis/index.html")
        assert response.status == 500
        assert response.text() == "Unknown network: atlantis"
        assert handler.network == "localhost"

    @pytest.mark.asyncio
    async def test_unknown_site(self, handler: WTTPHandler) -> None:
        """A site that does not exist answers 404."""
        response = await handler.fetch("wttp://" + "0x" + "99" * 20 + "/index.html")
        assert response.status == 404


class TestNetworks:
    """Test per-call network and identity overrides."""

    @pytest.mark.asyncio
    async def test_concurrent_networks(
        self, handler: WTTPHandler, connector: MockConnector, owner: str
    ) -> None:
        """Concurrent calls each reach their own network's engine."""
        local_site = connector.engine("localhost").create_site(owner)
        polygon_site = connector.engine("polygon").create_site(owner)

        await put(handler, local_site, "/index.html", "on localhost")
        await put(handler, polygon_site + ":polygon", "/index.html", "on polygon")

        responses = await asyncio.gather(*(
            handler.fetch(f"wttp://{local_site}/index.html")
            if i % 2 == 0
            else handler.fetch(f"wttp://{polygon_site}:polygon/index.html")
            for i in range(10)
        ))

        assert [r.text() for r in responses] == ["on localhost", "on polygon"] * 5
        assert handler.network == "localhost"

    @pytest.mark.asyncio
    async def test_selector_alias_for_active_network(
        self, handler: WTTPHandler, site: str, connector: MockConnector
    ) -> None:
        """An alias of the active network reuses its connection."""
        await put(handler, site + ":local", "/index.html", "Hello World")
        assert connector.connections == ["localhost"]

    @pytest.mark.asyncio
    async def test_set_network(self, handler: WTTPHandler, connector: MockConnector, owner: str) -> None:
        """set_network changes the default for later calls."""
        polygon_site = connector.engine("polygon").create_site(owner)
        handler.set_network("pol")
        assert handler.network == "polygon"

        response = await put(handler, polygon_site, "/index.html", "Hello World")
        assert response.status == 201
        assert ("put", polygon_site, "/index.html") in connector.engine("polygon").calls

    @pytest.mark.asyncio
    async def test_identity_override_is_per_call(
        self, handler: WTTPHandler, site: str, owner: str, stranger: str
    ) -> None:
        """An identity passed to fetch does not stick."""
        await put(handler, site, "/index.html", "Hello World", identity=stranger)
        assert handler.identity == owner

    @pytest.mark.asyncio
    async def test_set_identity(self, handler: WTTPHandler, site: str, stranger: str) -> None:
        """set_identity changes the default signer."""
        handler.set_identity(stranger)
        response = await put(handler, site, "/index.html", "Hello World")
        assert response.status == 403
