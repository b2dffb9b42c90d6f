from __future__ import annotations

import logging
from typing import Optional

from billing_graph.app.features import (
    company,
    stripe_customer,
    stripe_invoice,
    stripe_price,
    stripe_product,
    stripe_subscription,
    stripe_usage_record,
)
from billing_graph.app.services.registry.registry import TypeRegistry, type_registry

logger = logging.getLogger(__name__)

FEATURES = (
    company,
    stripe_customer,
    stripe_product,
    stripe_price,
    stripe_subscription,
    stripe_invoice,
    stripe_usage_record,
)


def register_all(registry: Optional[TypeRegistry] = None) -> TypeRegistry:
    """Start-up registration phase: every feature module adds its entity types."""
    registry = registry if registry is not None else type_registry
    for feature in FEATURES:
        feature.register(registry)
    logger.info("Registered %d entity types", len(registry))
    return registry
