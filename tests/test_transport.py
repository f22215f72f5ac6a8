"""
Tests for session transports.
"""

import json

import httpx
import pytest

from quiz_flow.transport import (
    get_transport,
    Attribution,
    HttpSessionTransport,
    MockTransport,
    DefinitionLoadError,
    SessionTransportError,
)

from conftest import build_quiz, question, option


def make_http(handler) -> HttpSessionTransport:
    """HTTP transport whose requests are answered by handler."""
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="http://crm.test/api",
    )
    return HttpSessionTransport(base_url="http://crm.test/api", client=client)


class TestAttribution:
    """Tests for Attribution."""

    def test_from_url(self):
        """utm_* parameters are picked from the landing URL."""
        attribution = Attribution.from_url(
            "https://site.test/quiz?utm_source=fb&utm_campaign=spring&utm_term=",
            referrer="https://fb.test/",
        )

        assert attribution.utm_source == "fb"
        assert attribution.utm_campaign == "spring"
        assert attribution.utm_term is None
        assert attribution.referrer_url == "https://fb.test/"

    def test_to_dict_drops_empty(self):
        """Unset fields are left out of the request body."""
        data = Attribution(utm_source="fb").to_dict()

        assert data == {"utmSource": "fb"}

    def test_no_url(self):
        """No URL means no attribution."""
        assert Attribution.from_url(None).to_dict() == {}


class TestHttpTransport:
    """Tests for HttpSessionTransport."""

    @pytest.mark.asyncio
    async def test_fetch_definition(self):
        """GET /public/quiz/{id} is parsed into a definition."""
        quiz = build_quiz(questions=[question("q1", options=[option("a", 1)])], id="abc")
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=quiz.to_dict())

        transport = make_http(handler)
        definition = await transport.fetch_definition("abc", preview=True)

        assert definition == quiz
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/api/public/quiz/abc"
        assert seen[0].url.params["preview"] == "1"

    @pytest.mark.asyncio
    async def test_fetch_not_found(self):
        """A 404 is a load error."""
        transport = make_http(lambda request: httpx.Response(404))

        with pytest.raises(DefinitionLoadError, match="not found"):
            await transport.fetch_definition("missing")

    @pytest.mark.asyncio
    async def test_fetch_malformed(self):
        """A definition that cannot be parsed is a load error."""
        transport = make_http(lambda request: httpx.Response(200, json={"name": "no id"}))

        with pytest.raises(DefinitionLoadError, match="Malformed"):
            await transport.fetch_definition("abc")

    @pytest.mark.asyncio
    async def test_fetch_wrong_shape(self):
        """JSON of the wrong shape is a load error, not a crash."""
        bodies = [
            [1, 2],
            {"id": "abc", "questions": [{"id": "q1", "questionType": "single_choice", "options": ["oops"]}]},
            {"id": "abc", "questions": "nope"},
        ]

        for body in bodies:
            transport = make_http(lambda request, body=body: httpx.Response(200, json=body))

            with pytest.raises(DefinitionLoadError, match="Malformed"):
                await transport.fetch_definition("abc")

    @pytest.mark.asyncio
    async def test_fetch_connection_error(self):
        """Network failures are load errors."""
        def handler(request):
            raise httpx.ConnectError("refused")

        transport = make_http(handler)

        with pytest.raises(DefinitionLoadError):
            await transport.fetch_definition("abc")

    @pytest.mark.asyncio
    async def test_session_lifecycle_requests(self):
        """Open, patch and complete hit the documented endpoints."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content) if request.content else None
            seen.append((request.method, request.url.path, body))
            if request.url.path.endswith("/sessions"):
                return httpx.Response(201, json={"id": "s-1"})
            return httpx.Response(200, json={"ok": True})

        transport = make_http(handler)
        session_id = await transport.open_session("abc", Attribution(utm_source="fb"))
        await transport.patch_answers("abc", session_id, {"q1": "a"})
        await transport.complete_session("abc", session_id, answers={"q1": "a"})
        await transport.complete_session("abc", session_id, lead_data={"email": "x@y.z"})

        assert session_id == "s-1"
        assert seen == [
            ("POST", "/api/public/quiz/abc/sessions", {"utmSource": "fb"}),
            ("PATCH", "/api/public/quiz/abc/sessions/s-1", {"answers": {"q1": "a"}}),
            ("POST", "/api/public/quiz/abc/sessions/s-1/complete", {"answers": {"q1": "a"}}),
            ("POST", "/api/public/quiz/abc/sessions/s-1/complete", {"leadData": {"email": "x@y.z"}}),
        ]

    @pytest.mark.asyncio
    async def test_open_without_id(self):
        """A session response without an id is an error."""
        transport = make_http(lambda request: httpx.Response(201, json={}))

        with pytest.raises(SessionTransportError):
            await transport.open_session("abc", Attribution())

    @pytest.mark.asyncio
    async def test_server_error(self):
        """Non-2xx responses become session errors."""
        transport = make_http(lambda request: httpx.Response(500))

        with pytest.raises(SessionTransportError, match="HTTP 500"):
            await transport.patch_answers("abc", "s-1", {"q1": "a"})

    @pytest.mark.asyncio
    async def test_empty_body_accepted(self):
        """A 204 from PATCH is fine."""
        transport = make_http(lambda request: httpx.Response(204))

        await transport.patch_answers("abc", "s-1", {"q1": "a"})

    @pytest.mark.asyncio
    async def test_close(self):
        """Closing releases the client."""
        transport = make_http(lambda request: httpx.Response(204))
        await transport.close()

        assert transport._client is None


class TestMockTransport:
    """Tests for MockTransport."""

    @pytest.mark.asyncio
    async def test_answers_merge_last_write_wins(self):
        """Patches merge per question id."""
        transport = MockTransport()
        session_id = await transport.open_session("quiz-1", Attribution())

        await transport.patch_answers("quiz-1", session_id, {"q1": "a"})
        await transport.patch_answers("quiz-1", session_id, {"q2": "b"})
        await transport.patch_answers("quiz-1", session_id, {"q1": "c"})

        assert transport.sessions[session_id]["answers"] == {"q1": "c", "q2": "b"}

    @pytest.mark.asyncio
    async def test_complete(self):
        """Completion stores lead data and marks the session."""
        transport = MockTransport()
        session_id = await transport.open_session("quiz-1", Attribution())
        await transport.complete_session("quiz-1", session_id, lead_data={"email": "a@b.c"})

        session = transport.sessions[session_id]
        assert session["status"] == "completed"
        assert session["leadData"] == {"email": "a@b.c"}

    @pytest.mark.asyncio
    async def test_fail_on(self):
        """Selected operations can be made to fail."""
        transport = MockTransport(fail_on={"open"})

        with pytest.raises(SessionTransportError):
            await transport.open_session("quiz-1", Attribution())
        assert len(transport.calls_for("open")) == 1

    @pytest.mark.asyncio
    async def test_fetch_definition(self, linear_quiz):
        """Known definitions are served, unknown ones fail."""
        transport = MockTransport()
        transport.add_definition(linear_quiz)

        assert await transport.fetch_definition("quiz-1") == linear_quiz
        with pytest.raises(DefinitionLoadError):
            await transport.fetch_definition("other")

    @pytest.mark.asyncio
    async def test_unknown_session(self):
        """Patching a session that does not exist fails."""
        transport = MockTransport()

        with pytest.raises(SessionTransportError):
            await transport.patch_answers("quiz-1", "nope", {"q1": "a"})


class TestGetTransport:
    """Tests for the transport factory."""

    def test_known(self):
        """Transports are created by name."""
        assert isinstance(get_transport("mock"), MockTransport)
        assert isinstance(get_transport("http", base_url="http://x.test"), HttpSessionTransport)

    def test_unknown(self):
        """Unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown transport"):
            get_transport("carrier-pigeon")
