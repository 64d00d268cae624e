from __future__ import annotations

import asyncio
import time
from functools import lru_cache
from typing import Dict, List, Optional

from loguru import logger
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from . import config
from .errors import ConfigurationMissing, InvalidArgument, UpstreamFailure

_ROLE_TO_MESSAGE = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


@lru_cache(maxsize=16)
def get_chat_model(provider: str, api_key: str, model: str) -> BaseChatModel:
    """Return a cached LangChain chat client for `provider`/`model`.

    Temperature, max tokens and timeout come from groupchat.config.
    """
    logger.debug(f"Initializing {provider} chat model={model} temperature={config.TEMPERATURE}")
    if provider == "openai":
        return ChatOpenAI(
            model=model,
            api_key=api_key,
            temperature=config.TEMPERATURE,
            max_tokens=config.MAX_TOKENS,
            timeout=config.PROVIDER_TIMEOUT,
            max_retries=0,
        )
    if provider == "anthropic":
        return ChatAnthropic(
            model=model,
            api_key=api_key,
            temperature=config.TEMPERATURE,
            max_tokens=config.MAX_TOKENS,
            timeout=config.PROVIDER_TIMEOUT,
            max_retries=0,
        )
    raise InvalidArgument(f"Unsupported provider: {provider}")


def to_langchain_messages(messages: List[Dict[str, str]]) -> List[BaseMessage]:
    out: List[BaseMessage] = []
    for m in messages:
        cls = _ROLE_TO_MESSAGE.get(m.get("role", "user"), HumanMessage)
        out.append(cls(content=m.get("content", "")))
    return out


def _text_of(result) -> str:
    content = getattr(result, "content", None)
    if isinstance(content, list):
        # Anthropic may return content blocks
        parts = [c.get("text", "") if isinstance(c, dict) else str(c) for c in content]
        content = "".join(parts)
    return (content or "").strip()


async def generate_with_provider(
    provider: str,
    api_key: Optional[str],
    model: str,
    messages: List[Dict[str, str]],
    timeout: Optional[float] = None,
) -> str:
    """Run one chat completion and return its text.

    Raises ConfigurationMissing without an API key, InvalidArgument for an
    unknown provider, and UpstreamFailure when the call errors, times out or
    comes back empty.
    """
    if not api_key:
        raise ConfigurationMissing(f"API key is required for {provider}")
    if provider not in config.API_KEY_ENV:
        raise InvalidArgument(f"Unsupported provider: {provider}")
    if not model:
        raise InvalidArgument("Model is required")

    llm = get_chat_model(provider, api_key, model)
    limit = timeout or config.PROVIDER_TIMEOUT
    t0 = time.perf_counter()
    try:
        result = await asyncio.wait_for(llm.ainvoke(to_langchain_messages(messages)), timeout=limit)
    except asyncio.TimeoutError as e:
        raise UpstreamFailure(f"{provider}:{model} timed out after {limit:.1f}s") from e
    except Exception as e:
        raise UpstreamFailure(f"Failed to generate with {provider}: {e}") from e
    dt = time.perf_counter() - t0
    text = _text_of(result)
    logger.info(f"llm_call | provider={provider} model={model} dt={dt:.2f}s chars={len(text)}")
    if not text:
        raise UpstreamFailure(f"{provider}:{model} returned empty content")
    return text
