from __future__ import annotations

import pytest

from billing_graph.app.core.settings import Settings
from billing_graph.app.models.registry import EntityMetadata
from billing_graph.app.services.materializer.service import GraphMaterializer
from billing_graph.app.services.registry.registry import TypeRegistry

from .factories import plain_mapper, tagged_mapper


@pytest.fixture
def registry() -> TypeRegistry:
    reg = TypeRegistry()
    reg.register("product", EntityMetadata(token="product", label="Product", mapper=plain_mapper))
    reg.register("price", EntityMetadata(token="price", label="Price", mapper=plain_mapper, single_children=["product"]))
    reg.register("subscription", EntityMetadata(token="subscription", label="Subscription", mapper=plain_mapper, many_children=["price"]))
    reg.register("customer", EntityMetadata(token="customer", label="Customer", mapper=tagged_mapper("customer")))
    reg.register(
        "account",
        EntityMetadata(
            token="account",
            label="Account",
            mapper=plain_mapper,
            dynamic_single_child_patterns=["{parent}_{*}"],
        )
    )
    reg.register(
        "order",
        EntityMetadata(
            token="order",
            label="Order",
            mapper=plain_mapper,
            dynamic_many_child_patterns=["{parent}_{*}"],
        )
    )
    # relationship-valued type, columns end in _purchased
    reg.register("purchased", EntityMetadata(token="purchased", label="PURCHASED", mapper=plain_mapper))
    reg.register(
        "buyer",
        EntityMetadata(
            token="buyer",
            label="Buyer",
            mapper=plain_mapper,
            single_children=["product"],
            many_children=["purchased"],
        )
    )
    return reg


@pytest.fixture
def settings() -> Settings:
    return Settings(freeze_registry_on_use=True, pattern_cache_size=32)


@pytest.fixture
def materializer(registry: TypeRegistry, settings: Settings) -> GraphMaterializer:
    return GraphMaterializer(registry=registry, settings=settings)
