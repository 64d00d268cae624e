"""Per-participant provider configuration.

A participant with no entry, a disabled entry, or the `simulated` provider
answers from role templates. Anything else is routed to a real model.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional

from loguru import logger

from .config import DEFAULT_MODELS
from .errors import InvalidArgument

SIMULATED = "simulated"
REAL_PROVIDERS = ("openai", "anthropic")


@dataclass(frozen=True)
class ProviderConfig:
    enabled: bool = False
    provider: str = SIMULATED
    model: Optional[str] = None


@dataclass(frozen=True)
class ProviderDetails:
    provider: str
    model: str


class Switchboard:
    def __init__(self) -> None:
        self._configs: Dict[str, ProviderConfig] = {}

    def set_participant_config(self, participant_id: str, config: ProviderConfig) -> None:
        if config.provider != SIMULATED and config.provider not in REAL_PROVIDERS:
            raise InvalidArgument(f"Unsupported provider: {config.provider}")
        if config.provider != SIMULATED and not config.model:
            config = replace(config, model=DEFAULT_MODELS[config.provider])
        self._configs[participant_id] = config
        logger.debug(
            f"switchboard_set | participant={participant_id} provider={config.provider} "
            f"model={config.model} enabled={config.enabled}"
        )

    def get_participant_config(self, participant_id: str) -> Optional[ProviderConfig]:
        return self._configs.get(participant_id)

    def get_participant_config_with_default(self, participant_id: str) -> ProviderConfig:
        return self._configs.get(participant_id) or ProviderConfig()

    def get_all(self) -> Dict[str, ProviderConfig]:
        return dict(self._configs)

    def set_many(self, configs: Dict[str, ProviderConfig]) -> None:
        for participant_id, config in configs.items():
            self.set_participant_config(participant_id, config)

    def clear(self) -> None:
        self._configs.clear()

    def has_real_provider_enabled(self, participant_id: str) -> bool:
        config = self.get_participant_config_with_default(participant_id)
        return config.enabled and config.provider != SIMULATED

    def get_provider_details(self, participant_id: str) -> Optional[ProviderDetails]:
        if not self.has_real_provider_enabled(participant_id):
            return None
        config = self._configs[participant_id]
        return ProviderDetails(
            provider=config.provider,
            model=config.model or DEFAULT_MODELS[config.provider],
        )
