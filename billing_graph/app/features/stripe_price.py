from __future__ import annotations

from billing_graph.app.helpers.define_entity import FieldDef, RelationshipDef, define_entity
from billing_graph.app.services.registry.registry import TypeRegistry

stripe_price = define_entity(
    token="stripePrice",
    label="StripePrice",
    fields={
        "stripePriceId": FieldDef(type="string", required=True),
        "active": FieldDef(type="boolean", default=True),
        "currency": FieldDef(type="string", required=True),
        "unitAmount": FieldDef(type="number"),
        "priceType": FieldDef(type="string", default="recurring"),
        "recurringInterval": FieldDef(type="string"),
        "recurringIntervalCount": FieldDef(type="number"),
        "nickname": FieldDef(type="string"),
        "lookupKey": FieldDef(type="string"),
        "metadata": FieldDef(type="json"),
    },
    relationships={
        "product": RelationshipDef(
            model="stripeProduct", direction="out", relationship="BELONGS_TO_PRODUCT", cardinality="one"
        ),
    },
)


def register(registry: TypeRegistry) -> None:
    registry.register(stripe_price.token, stripe_price.metadata)
