from __future__ import annotations

from billing_graph.app.helpers.define_entity import FieldDef, RelationshipDef, define_entity
from billing_graph.app.services.registry.registry import TypeRegistry

stripe_usage_record = define_entity(
    token="stripeUsageRecord",
    label="StripeUsageRecord",
    fields={
        "subscriptionItemId": FieldDef(type="string", required=True),
        "meterId": FieldDef(type="string"),
        "meterEventName": FieldDef(type="string"),
        "quantity": FieldDef(type="number", required=True),
        "timestamp": FieldDef(type="datetime", required=True),
        "stripeEventId": FieldDef(type="string"),
    },
    relationships={
        "subscription": RelationshipDef(
            model="stripeSubscription", direction="in", relationship="HAS_USAGE_RECORD", cardinality="one"
        ),
    },
)


def register(registry: TypeRegistry) -> None:
    registry.register(stripe_usage_record.token, stripe_usage_record.metadata)
