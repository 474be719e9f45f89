
from typing import Any, AsyncIterator, Dict, Mapping, Optional

from core.domain import AgentEvent

_BLOCKED_FINISH_REASONS = frozenset({
    'SAFETY', 'RECITATION', 'BLOCKLIST', 'PROHIBITED_CONTENT', 'SPII', 'IMAGE_SAFETY',
})


def _content_text(content: Any) -> str:
    """
    Chat model content is either a string or a list of content blocks;
    only the text blocks are kept.
    """
    if isinstance(content, str):
        return content

    parts: list[str] = []
    if isinstance(content, list):
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, Mapping) and block.get('type') == 'text':
                text = block.get('text')
                if isinstance(text, str):
                    parts.append(text)
    return ''.join(parts)


def _extract_text(data: Mapping[str, Any]) -> Optional[str]:
    ch = data.get('chunk')
    if isinstance(ch, str):
        return ch or None

    text = _content_text(getattr(ch, 'content', None))
    return text or None


def _end_payload(data: Mapping[str, Any]) -> AgentEvent:
    out = data.get('output')
    if isinstance(out, str):
        return {'type': 'message_end', 'text': out}

    text = _content_text(getattr(out, 'content', None))
    metadata = getattr(out, 'response_metadata', None) or {}
    finish_reason = str(metadata.get('finish_reason') or '').upper()
    if not text and finish_reason in _BLOCKED_FINISH_REASONS:
        # the call returned normally but the answer was withheld
        return {'type': 'message_end', 'text': '', 'error': f'Response blocked ({finish_reason})'}
    return {'type': 'message_end', 'text': text}


async def adapt_events(stream: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[AgentEvent]:
    """
    Convert langchain astream_events (v2) into the AgentEvents the session
    core consumes. Events with no counterpart are skipped.
    """
    async for ev in stream:
        event = ev.get('event')
        data = ev.get('data') or {}

        if event == 'on_chat_model_start':
            yield {'type': 'message_start', 'role': 'assistant'}

        elif event == 'on_chat_model_stream':
            text = _extract_text(data)
            if text:
                yield {'type': 'message_update', 'delta': text}

        elif event == 'on_chat_model_end':
            yield _end_payload(data)

    yield {'type': 'agent_end'}
