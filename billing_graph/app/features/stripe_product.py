from __future__ import annotations

from billing_graph.app.helpers.define_entity import FieldDef, define_entity
from billing_graph.app.services.registry.registry import TypeRegistry

stripe_product = define_entity(
    token="stripeProduct",
    label="StripeProduct",
    fields={
        "stripeProductId": FieldDef(type="string", required=True),
        "name": FieldDef(type="string", required=True),
        "description": FieldDef(type="string"),
        "active": FieldDef(type="boolean", default=True),
        "metadata": FieldDef(type="json"),
    },
)


def register(registry: TypeRegistry) -> None:
    registry.register(stripe_product.token, stripe_product.metadata)
