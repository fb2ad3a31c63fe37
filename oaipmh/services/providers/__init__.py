"""Record and set providers and the loader that builds them from settings."""

from __future__ import annotations

import logging
from importlib import import_module

from oaipmh.services.providers.base import Provider, RecordFilter
from oaipmh.services.providers.table import TableProvider

logger = logging.getLogger(__name__)


class ProviderLoadError(ValueError):
    pass


def load_provider(path: str) -> tuple[str, Provider]:
    """Load ``module:attribute`` and return ``(key, provider)``.

    The attribute may be a provider instance, a provider class, or a
    zero-argument factory. The key is the attribute name unless the path
    is written as ``key=module:attribute``.
    """
    key, _, target = path.rpartition("=")
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ProviderLoadError(f"Provider path must look like module:attribute, got {path!r}")
    try:
        candidate = getattr(import_module(module_name), attribute)
    except (ImportError, AttributeError) as exc:
        raise ProviderLoadError(f"Cannot load provider {target}: {exc}") from exc

    if isinstance(candidate, Provider):
        provider = candidate
    elif callable(candidate):
        provider = candidate()
    else:
        raise ProviderLoadError(f"{target} is neither a Provider nor a provider factory")
    if not isinstance(provider, Provider):
        raise ProviderLoadError(f"{target} did not produce a Provider")
    return key.strip() or attribute, provider


def load_providers(paths: list[str]) -> list[tuple[str, Provider]]:
    providers = []
    for path in paths:
        key, provider = load_provider(path)
        logger.info("Registered OAI provider %s from %s", key, path)
        providers.append((key, provider))
    return providers


__all__ = ["Provider", "ProviderLoadError", "RecordFilter", "TableProvider", "load_provider", "load_providers"]
