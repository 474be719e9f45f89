"""Tests for the langgraph event adapter and the model provider wrapper."""
from __future__ import annotations

from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, HumanMessage

from core.configuration import Configuration
from core.langgraph_adapter import adapt_events
from core.provider import LangGraphProvider, ProviderError, text_deltas, to_messages
from models import ConversationTurn, Role


async def _aiter(items):
    for item in items:
        yield item


async def _collect(stream) -> list:
    return [item async for item in stream]


class _FakeAgent:
    def __init__(self, events=(), error: Exception | None = None):
        self.events = list(events)
        self.error = error
        self.payloads: list[dict] = []

    async def astream_events(self, payload, version):
        self.payloads.append(payload)
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


def _model_events(*chunks) -> list[dict]:
    return [
        {'event': 'on_chain_start', 'name': 'chat_agent', 'data': {}},
        {'event': 'on_chat_model_start', 'data': {'input': {}}},
        *({'event': 'on_chat_model_stream', 'data': {'chunk': AIMessageChunk(content=chunk)}} for chunk in chunks),
        {'event': 'on_chat_model_end', 'data': {'output': AIMessage(content="".join(chunks))}},
        {'event': 'on_chain_end', 'name': 'chat_agent', 'data': {}},
    ]


@pytest.mark.asyncio
async def test_adapter_maps_model_lifecycle() -> None:
    events = await _collect(adapt_events(_aiter(_model_events("Hi", " there"))))

    assert events == [
        {'type': 'message_start', 'role': 'assistant'},
        {'type': 'message_update', 'delta': "Hi"},
        {'type': 'message_update', 'delta': " there"},
        {'type': 'message_end', 'text': "Hi there"},
        {'type': 'agent_end'},
    ]


@pytest.mark.asyncio
async def test_adapter_reads_text_blocks_and_skips_empty_chunks() -> None:
    raw = [
        {'event': 'on_chat_model_stream', 'data': {'chunk': AIMessageChunk(content="")}},
        {'event': 'on_chat_model_stream', 'data': {'chunk': AIMessageChunk(content=[
            {'type': 'text', 'text': "Hel"},
            {'type': 'thinking', 'thinking': "hmm"},
            "lo",
        ])}},
        {'event': 'on_chat_model_stream', 'data': {'chunk': "!"}},
        {'event': 'on_chat_model_stream', 'data': {}},
    ]

    events = await _collect(adapt_events(_aiter(raw)))

    assert events == [
        {'type': 'message_update', 'delta': "Hello"},
        {'type': 'message_update', 'delta': "!"},
        {'type': 'agent_end'},
    ]


def test_to_messages_keeps_roles_and_order() -> None:
    messages = to_messages([
        ConversationTurn(Role.USER, "hi"),
        ConversationTurn(Role.ASSISTANT, "hello"),
        ConversationTurn(Role.USER, "bye"),
    ])

    assert [type(message) for message in messages] == [HumanMessage, AIMessage, HumanMessage]
    assert [message.content for message in messages] == ["hi", "hello", "bye"]


@pytest.mark.asyncio
async def test_provider_streams_agent_events() -> None:
    agent = _FakeAgent(_model_events("ok"))
    provider = LangGraphProvider(Configuration(api_key="test-key"), agent=agent)

    deltas = await _collect(text_deltas(provider.stream([ConversationTurn(Role.USER, "hi")])))

    assert deltas == ["ok"]
    assert [message.content for message in agent.payloads[0]["messages"]] == ["hi"]


@pytest.mark.asyncio
async def test_provider_wraps_failures() -> None:
    agent = _FakeAgent(_model_events("par")[:3], error=ConnectionError("network down"))
    provider = LangGraphProvider(Configuration(api_key="test-key"), agent=agent)

    received = []
    with pytest.raises(ProviderError, match="network down") as info:
        async for event in provider.stream([ConversationTurn(Role.USER, "hi")]):
            received.append(event)

    assert isinstance(info.value.__cause__, ConnectionError)
    assert received == [
        {'type': 'message_start', 'role': 'assistant'},
        {'type': 'message_update', 'delta': "par"},
    ]


@pytest.mark.asyncio
async def test_provider_error_without_message_uses_exception_name() -> None:
    provider = LangGraphProvider(Configuration(api_key="k"), agent=_FakeAgent(error=TimeoutError()))

    with pytest.raises(ProviderError, match="TimeoutError"):
        await _collect(provider.stream([]))


@pytest.mark.asyncio
async def test_text_deltas_raises_on_error_end() -> None:
    events = _aiter([
        {'type': 'message_update', 'delta': "a"},
        {'type': 'message_end', 'error': "quota"},
    ])

    with pytest.raises(ProviderError, match="quota"):
        await _collect(text_deltas(events))


def test_configuration_is_passed_to_chat_model(monkeypatch: pytest.MonkeyPatch) -> None:
    from core.agents import chat_agent

    calls = []

    def fake_init_chat_model(model, **kwargs):
        calls.append((model, kwargs))
        return SimpleNamespace()

    monkeypatch.setattr(chat_agent, "init_chat_model", fake_init_chat_model)
    configuration = Configuration(api_key="secret", model_identifier="gemini-x", model_provider="google_genai")

    chat_agent.build_llm(configuration)

    assert calls == [("gemini-x", {'model_provider': "google_genai", 'api_key': "secret"})]


def _blocked_events(finish_reason: str) -> list[dict]:
    return [
        {'event': 'on_chat_model_start', 'data': {'input': {}}},
        {'event': 'on_chat_model_end', 'data': {'output': AIMessage(
            content="", response_metadata={'finish_reason': finish_reason},
        )}},
    ]


@pytest.mark.asyncio
async def test_adapter_reports_withheld_answer_as_error() -> None:
    events = await _collect(adapt_events(_aiter(_blocked_events("SAFETY"))))

    assert events == [
        {'type': 'message_start', 'role': 'assistant'},
        {'type': 'message_end', 'text': "", 'error': "Response blocked (SAFETY)"},
        {'type': 'agent_end'},
    ]


@pytest.mark.asyncio
async def test_adapter_keeps_empty_answer_with_normal_finish() -> None:
    events = await _collect(adapt_events(_aiter(_blocked_events("STOP"))))

    assert events[1] == {'type': 'message_end', 'text': ""}


@pytest.mark.asyncio
async def test_withheld_answer_rolls_back_session_turn() -> None:
    from core.orchestrator import Orchestrator
    from core.terminal import TerminalSession

    provider = LangGraphProvider(Configuration(api_key="k"), agent=_FakeAgent(_blocked_events("RECITATION")))
    statuses: list[str] = []

    def set_text(region, text):
        if region.value == "status":
            statuses.append(text)

    orchestrator = Orchestrator(provider, SimpleNamespace(set_text=set_text), TerminalSession(lambda code: None))

    assert await orchestrator.submit("quote the book") is False
    assert orchestrator.transcript.as_pairs() == []
    assert statuses[-1] == "Error: Response blocked (RECITATION)"
