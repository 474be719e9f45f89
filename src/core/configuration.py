"""
Runtime configuration resolved from the environment (.env is loaded by the
caller through python-dotenv).
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.agents.chat_agent import SYSTEM_PROMPT

DEFAULT_MODEL_IDENTIFIER = 'gemini-3-flash-preview'
DEFAULT_MODEL_PROVIDER = 'google_genai'
API_KEY_VARIABLES = ('GOOGLE_GENERATIVE_AI_API_KEY', 'GOOGLE_API_KEY', 'GEMINI_API_KEY')


class ConfigurationError(Exception):
    """Raised when the session cannot start, e.g. no credential is set."""


@dataclass(frozen=True)
class Configuration:
    api_key: str
    model_identifier: str = DEFAULT_MODEL_IDENTIFIER
    model_provider: str = DEFAULT_MODEL_PROVIDER
    system_prompt: str = SYSTEM_PROMPT


def load_configuration(
    environ: Optional[Mapping[str, str]] = None,
    model_identifier: Optional[str] = None,
) -> Configuration:
    env = os.environ if environ is None else environ
    return Configuration(
        api_key=_resolve_api_key(env),
        model_identifier=model_identifier or env.get('GEMINI_MODEL') or DEFAULT_MODEL_IDENTIFIER,
        model_provider=env.get('AGENT_CHAT_MODEL_PROVIDER') or DEFAULT_MODEL_PROVIDER,
        system_prompt=env.get('AGENT_CHAT_SYSTEM_PROMPT') or SYSTEM_PROMPT,
    )


def _resolve_api_key(env: Mapping[str, str]) -> str:
    for name in API_KEY_VARIABLES:
        value = env.get(name)
        if value:
            return value

    raise ConfigurationError(
        'Missing Google API key. Set ' + ', '.join(API_KEY_VARIABLES[:-1])
        + f', or {API_KEY_VARIABLES[-1]}.'
    )
