# src/providers/provider_factory.py — v1
"""Factory: instantiate providers from their names and build the chain.

Adapters are imported lazily so an SDK that is not installed only affects
the provider that needs it.
"""

from __future__ import annotations

import importlib
import logging

from lingocore.config.settings import ON_DEVICE_PROVIDERS, Settings
from lingocore.providers.base_provider import BaseProvider
from lingocore.providers.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "lingua": "lingocore.providers.adapters.lingua_adapter.LinguaProvider",
    "ollama": "lingocore.providers.adapters.ollama_adapter.OllamaProvider",
    "google": "lingocore.providers.adapters.google_adapter.GoogleProvider",
    "openai": "lingocore.providers.adapters.openai_adapter.OpenAIProvider",
    "anthropic": "lingocore.providers.adapters.anthropic_adapter.AnthropicProvider",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_provider(
    provider_name: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseProvider:
    """Instantiate the adapter registered under ``provider_name``.

    The instance is named after its registry key unless ``name`` is passed
    explicitly.

    Args:
        provider_name: Registry key (lingua, ollama, google, openai, anthropic
            or a registered custom adapter).
        settings: Application settings (credentials, models, timeouts).
        **kwargs: Explicit constructor arguments, taking precedence.

    Raises:
        UnsupportedProviderError: If the provider is not registered.
    """
    name = provider_name
    if name not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported provider: {name!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    provider_cls = _import_class(_PROVIDER_REGISTRY[name])
    init_kwargs = dict(kwargs)
    init_kwargs.setdefault("name", name)

    if settings is not None:
        init_kwargs.setdefault("priority", settings.provider_priority(name))
        init_kwargs.setdefault("timeout_s", settings.provider_timeout(name))
        init_kwargs.setdefault("max_retries", settings.provider_max_retries)
        if name == "ollama":
            init_kwargs.setdefault("base_url", settings.ollama_base_url)
            init_kwargs.setdefault("model", settings.ollama_model)
        elif name in ("google", "openai", "anthropic"):
            init_kwargs.setdefault("api_key", getattr(settings, f"{name}_api_key"))
            init_kwargs.setdefault("model", getattr(settings, f"{name}_model"))
            init_kwargs.setdefault(
                "rate_limiter",
                RateLimiter(
                    settings.remote_rate_limit_requests,
                    settings.remote_rate_limit_window_s,
                ),
            )

    logger.debug("Creating provider: %s", name)
    return provider_cls(**init_kwargs)


def build_provider_chain(settings: Settings) -> list[BaseProvider]:
    """Instantiate every provider listed in PROVIDER_CHAIN, in declared order.

    Ordering by priority happens in the coordinator; declared order is the
    tie-break it relies on.
    """
    chain: list[BaseProvider] = []
    for name in settings.provider_chain_list:
        provider = create_provider(name, settings)
        if name not in ON_DEVICE_PROVIDERS and not getattr(settings, f"{name}_api_key", ""):
            logger.warning("Provider %s is in the chain but has no API key", name)
        chain.append(provider)
    return chain


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseProvider.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered provider: %s → %s", name, class_path)


def registered_providers() -> list[str]:
    return sorted(_PROVIDER_REGISTRY)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
