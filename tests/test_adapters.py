"""
HTTP adapters with their transports stubbed: Google Calendar over
httpx.MockTransport and the OpenAI provider over a fake client.
"""
import asyncio
import json
from datetime import timedelta
from types import SimpleNamespace

import httpx
import openai
import pytest

from taskdeck.domain.calendar.service import build_event
from taskdeck.domain.common.errors import RemoteError
from taskdeck.infra.calendar.google_calendar import GoogleCalendarGateway, event_body
from taskdeck.infra.llm.openai_provider import OpenAISuggestionProvider, response_text

from tests.fakes import T0, make_task


def _gateway(handler):
    return GoogleCalendarGateway(calendar_id="team@example.com", transport=httpx.MockTransport(handler))


def test_insert_event_posts_body_with_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "ev42", "summary": "Dentist", "htmlLink": "https://cal/ev42"})

    event = build_event(make_task("a", 0, title="Dentist", due_date=T0), "UTC")
    ref = asyncio.run(_gateway(handler).insert_event("tok", event))

    assert ref.event_id == "ev42"
    assert ref.html_link == "https://cal/ev42"
    assert seen["auth"] == "Bearer tok"
    assert seen["path"] == "/calendar/v3/calendars/team@example.com/events"
    assert seen["body"] == event_body(event)
    assert seen["body"]["reminders"]["overrides"] == [{"method": "popup", "minutes": 30}]


def test_list_events_parses_items():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["singleEvents"] == "true"
        return httpx.Response(
            200,
            json={"items": [{"id": "1", "summary": "Standup", "start": {"dateTime": "2026-03-04T10:00:00+00:00"}}]},
        )

    events = asyncio.run(_gateway(handler).list_events("tok", T0, T0 + timedelta(days=7)))
    assert [(e.event_id, e.summary) for e in events] == [("1", "Standup")]
    assert events[0].start == T0 + timedelta(hours=1)


def test_http_errors_become_remote_errors():
    def unauthorized(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "invalid"})

    def broken(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(RemoteError):
        asyncio.run(_gateway(unauthorized).verify("tok"))
    with pytest.raises(RemoteError):
        asyncio.run(_gateway(broken).verify("tok"))


def test_insert_without_event_id_is_an_error():
    gateway = _gateway(lambda request: httpx.Response(200, json={}))
    event = build_event(make_task("a", 0, due_date=T0), "UTC")
    with pytest.raises(RemoteError):
        asyncio.run(gateway.insert_event("tok", event))


class _FakeResponses:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.result


def test_openai_provider_sends_instructions_and_returns_text():
    responses = _FakeResponses(result=SimpleNamespace(output_text=' {"suggestions": []} '))
    provider = OpenAISuggestionProvider("key", model="gpt-test", client=SimpleNamespace(responses=responses))
    text = asyncio.run(provider.complete("be helpful", "plan my day"))
    assert text == '{"suggestions": []}'
    assert responses.kwargs["model"] == "gpt-test"
    assert responses.kwargs["instructions"] == "be helpful"
    assert responses.kwargs["input"] == "plan my day"


def test_openai_provider_maps_errors():
    failing = _FakeResponses(error=openai.OpenAIError("boom"))
    provider = OpenAISuggestionProvider("key", client=SimpleNamespace(responses=failing))
    with pytest.raises(RemoteError):
        asyncio.run(provider.complete("i", "m"))

    empty = _FakeResponses(result=SimpleNamespace(output_text="", output=[]))
    provider = OpenAISuggestionProvider("key", client=SimpleNamespace(responses=empty))
    with pytest.raises(RemoteError):
        asyncio.run(provider.complete("i", "m"))


def test_response_text_walks_output_blocks():
    block = SimpleNamespace(type="output_text", text=" hello ")
    response = SimpleNamespace(output_text=None, output=[SimpleNamespace(content=[block])])
    assert response_text(response) == "hello"
