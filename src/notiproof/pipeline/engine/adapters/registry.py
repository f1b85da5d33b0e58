from __future__ import annotations

import logging
from typing import Dict

from notiproof.pipeline.engine.adapters.base import SourceAdapter
from notiproof.pipeline.engine.adapters.commerce import ShopifyAdapter, WooCommerceAdapter
from notiproof.pipeline.engine.adapters.forms import FormHookAdapter
from notiproof.pipeline.engine.adapters.generic import GenericAdapter
from notiproof.pipeline.engine.adapters.payments import StripeAdapter
from notiproof.pipeline.engine.adapters.reviews import GoogleReviewsAdapter
from notiproof.pipeline.engine.adapters.sdk import (
    APIAdapter,
    CustomSDKAdapter,
    JavaScriptAPIAdapter,
)

logger = logging.getLogger(__name__)

GENERIC_ADAPTER: SourceAdapter = GenericAdapter()

_ADAPTERS: Dict[str, SourceAdapter] = {
    a.source: a
    for a in (
        ShopifyAdapter(),
        WooCommerceAdapter(),
        StripeAdapter(),
        GoogleReviewsAdapter(),
        CustomSDKAdapter(),
        JavaScriptAPIAdapter(),
        APIAdapter(),
        FormHookAdapter(),
    )
}


def register_adapter(adapter: SourceAdapter, *, replace: bool = False) -> None:
    if adapter.source in _ADAPTERS and not replace:
        raise ValueError(f"Adapter already registered for source={adapter.source}")
    _ADAPTERS[adapter.source] = adapter


def unregister_adapter(source: str) -> None:
    _ADAPTERS.pop(source, None)


def get_adapter(source: str) -> SourceAdapter:
    key = (source or "").strip().lower()
    try:
        return _ADAPTERS[key]
    except KeyError:
        logger.debug("No adapter for source=%s, using generic mapping", source)
        return GENERIC_ADAPTER


def registered_sources() -> list[str]:
    return sorted(_ADAPTERS)
