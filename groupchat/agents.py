from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Protocol

import httpx
from loguru import logger

from . import config
from .classifier import infer_message_type
from .errors import GroupChatError, UpstreamFailure
from .llm import generate_with_provider
from .personas import templates_for
from .states import GroupSession, MessageType, Participant
from .switchboard import ProviderDetails, Switchboard

CONTEXT_WINDOW = 5


def build_messages(system: Optional[str], context: Optional[str], prompt: str) -> List[Dict[str, str]]:
    """Assemble chat messages: optional system, optional context, then the prompt."""
    messages: List[Dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    if context:
        messages.append({"role": "user", "content": context})
    messages.append({"role": "user", "content": prompt})
    return messages


class GenerationClient(Protocol):
    async def generate(
        self,
        provider: str,
        model: str,
        system: Optional[str],
        context: Optional[str],
        prompt: str,
    ) -> str: ...


class DirectGenerationClient:
    """Calls the provider in-process with the API key from the environment."""

    def __init__(self, env: Optional[Mapping[str, str]] = None, timeout: Optional[float] = None) -> None:
        self.env = env
        self.timeout = timeout

    async def generate(self, provider, model, system, context, prompt) -> str:
        api_key = config.api_key_for(provider, self.env)
        return await generate_with_provider(
            provider,
            api_key,
            model,
            build_messages(system, context, prompt),
            timeout=self.timeout,
        )


class HttpGenerationClient:
    """Calls a running `POST /generate` endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or config.PROVIDER_TIMEOUT
        self.transport = transport

    async def generate(self, provider, model, system, context, prompt) -> str:
        payload = {"provider": provider, "model": model, "system": system, "context": context, "prompt": prompt}
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = await client.post("/generate", json=payload)
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"generate endpoint unreachable: {e}") from e
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFailure(f"generate endpoint returned malformed JSON ({response.status_code})") from e
        if not isinstance(data, dict):
            raise UpstreamFailure(f"generate endpoint returned {type(data).__name__}, expected an object")
        if response.status_code != 200 or not data.get("ok"):
            raise UpstreamFailure(f"generate endpoint error ({response.status_code}): {data.get('error')}")
        content = (data.get("content") or "").strip()
        if not content:
            raise UpstreamFailure("generate endpoint returned empty content")
        return content


@dataclass(frozen=True)
class Reply:
    content: str
    type: MessageType
    simulated: bool


class ResponseGenerator:
    """Produces the next reply for a participant.

    Uses the participant's configured provider when the switchboard has one,
    otherwise (or on any provider failure) a random template for the
    participant's role. Either way the text is styled by the persona.
    """

    def __init__(
        self,
        switchboard: Optional[Switchboard] = None,
        client: Optional[GenerationClient] = None,
        rng: Optional[random.Random] = None,
        retries: Optional[int] = None,
    ) -> None:
        self.switchboard = switchboard or Switchboard()
        self.client = client or DirectGenerationClient()
        self.rng = rng or random.Random()
        self.retries = config.PROVIDER_RETRIES if retries is None else max(0, retries)

    def build_system_prompt(self, session: GroupSession, participant: Participant) -> str:
        return (
            f"You are {participant.name}, a {participant.role.value} in a group discussion about \"{session.topic}\".\n"
            f"Your specializations are: {', '.join(participant.specializations)}.\n"
            f"Respond as {participant.name} would, keeping your response concise (max ~80 words)."
        )

    def build_context(self, session: GroupSession) -> str:
        recent = session.messages[-CONTEXT_WINDOW:]
        return "\n".join(f"{session.author_name(m.participant_id)}: {m.content}" for m in recent)

    def build_prompt(self, participant: Participant) -> str:
        return (
            f"Based on the conversation so far, provide a thoughtful response as {participant.name}.\n"
            "Be concise but insightful, and stay in character."
        )

    async def _from_provider(self, session: GroupSession, participant: Participant, details: ProviderDetails) -> str:
        system = self.build_system_prompt(session, participant)
        context = self.build_context(session)
        prompt = self.build_prompt(participant)
        last_error: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            t0 = time.perf_counter()
            try:
                text = await self.client.generate(details.provider, details.model, system, context, prompt)
            except GroupChatError as e:
                last_error = e
                logger.warning(
                    f"provider_failed | participant={participant.name} provider={details.provider} "
                    f"model={details.model} attempt={attempt + 1}/{self.retries + 1} err={e}"
                )
                continue
            dt = time.perf_counter() - t0
            logger.info(f"provider_reply | participant={participant.name} provider={details.provider} dt={dt:.2f}s")
            return text
        raise UpstreamFailure(str(last_error))

    def template_reply(self, participant: Participant) -> str:
        return self.rng.choice(templates_for(participant.role))

    async def generate(self, session: GroupSession, participant: Participant) -> Reply:
        details = self.switchboard.get_provider_details(participant.id)
        simulated = True
        text = ""
        if details is not None:
            try:
                text = await self._from_provider(session, participant, details)
                simulated = False
            except UpstreamFailure:
                logger.warning(
                    f"provider_fallback | participant={participant.name} "
                    f"{details.provider}:{details.model} failed, falling back to template"
                )
            except Exception:
                logger.exception(f"provider_fallback | participant={participant.name} unexpected error")
        if simulated:
            text = self.template_reply(participant)
        content = participant.style.apply(text)
        return Reply(content=content, type=infer_message_type(content), simulated=simulated)
