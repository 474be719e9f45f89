"""
Model provider: runs the chat agent over the transcript and streams
AgentEvents back.
"""
import logging
from typing import AsyncIterator, Iterable, Protocol

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from core.agents.chat_agent import build_agent
from core.configuration import Configuration
from core.domain import AgentEvent
from core.langgraph_adapter import adapt_events
from models import ConversationTurn, Role

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Any failure of the model call: auth, rate limit, network, bad stream."""


class ModelProvider(Protocol):
    def stream(self, turns: Iterable[ConversationTurn]) -> AsyncIterator[AgentEvent]:
        ...


def to_messages(turns: Iterable[ConversationTurn]) -> list[BaseMessage]:
    messages: list[BaseMessage] = []
    for turn in turns:
        if turn.role == Role.USER:
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))
    return messages


async def text_deltas(events: AsyncIterator[AgentEvent]) -> AsyncIterator[str]:
    """Only the streamed text out of an AgentEvent stream."""
    async for event in events:
        if event.get('type') == 'message_update' and event.get('delta'):
            yield event['delta']
        elif event.get('type') == 'message_end' and event.get('error'):
            raise ProviderError(event['error'])


class LangGraphProvider:
    def __init__(self, configuration: Configuration, agent=None):
        self.configuration = configuration
        self.agent = agent or build_agent(configuration)

    async def stream(self, turns: Iterable[ConversationTurn]) -> AsyncIterator[AgentEvent]:
        payload = {"messages": to_messages(turns)}
        logger.debug(
            "Calling %s with %d message(s)",
            self.configuration.model_identifier, len(payload["messages"]),
        )
        try:
            stream = self.agent.astream_events(payload, version='v2')
            async for ev in adapt_events(stream):
                yield ev
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(str(exc) or type(exc).__name__) from exc
