from dataclasses import dataclass
from typing import Dict, List, Optional
from projectgen.core.config import settings
from projectgen.core.errors import NoProviderConfigured
from projectgen.providers.base import ProviderAdapter
from projectgen.providers.impl_azure import AzureOpenAIProvider
from projectgen.providers.impl_google import GoogleGeminiProvider

PROVIDER_FACTORIES = {
    "azure": AzureOpenAIProvider,
    "google": GoogleGeminiProvider,
}


@dataclass
class ProviderSelector:
    """Priority-ordered adapters; only configured ones are ever selected."""
    adapters: List[ProviderAdapter]

    def usable(self) -> List[ProviderAdapter]:
        return [a for a in self.adapters if a.is_configured()]

    def select_initial(self) -> ProviderAdapter:
        for adapter in self.adapters:
            if adapter.is_configured():
                return adapter
        raise NoProviderConfigured()

    def next(self, current: ProviderAdapter) -> Optional[ProviderAdapter]:
        try:
            index = self.adapters.index(current)
        except ValueError:
            return None
        for adapter in self.adapters[index + 1:]:
            if adapter.is_configured():
                return adapter
        return None

    def configured_map(self) -> Dict[str, bool]:
        return {a.name: a.is_configured() for a in self.adapters}

    def active_name(self) -> str:
        usable = self.usable()
        return usable[0].name if usable else "none"

    @staticmethod
    def default() -> "ProviderSelector":
        adapters = []
        for name in settings.provider_order:
            factory = PROVIDER_FACTORIES.get(name)
            if factory is None:
                raise ValueError(f"Unknown provider in PROVIDER_PRIORITY: {name}")
            adapters.append(factory())
        return ProviderSelector(adapters=adapters)
