from __future__ import annotations

from typing import Any, Dict

from billing_graph.app.helpers.define_entity import ComputedFieldDef, FieldDef, RelationshipDef, define_entity
from billing_graph.app.services.registry.registry import TypeRegistry

LIVE_STATUSES = ("active", "trialing", "past_due")


def _is_live(data: Dict[str, Any], **_: Any) -> bool:
    return data.get("status") in LIVE_STATUSES


stripe_subscription = define_entity(
    token="stripeSubscription",
    label="StripeSubscription",
    fields={
        "stripeSubscriptionId": FieldDef(type="string", required=True),
        "status": FieldDef(type="string", required=True),
        "currentPeriodStart": FieldDef(type="datetime"),
        "currentPeriodEnd": FieldDef(type="datetime"),
        "cancelAtPeriodEnd": FieldDef(type="boolean", default=False),
        "canceledAt": FieldDef(type="datetime"),
        "trialStart": FieldDef(type="datetime"),
        "trialEnd": FieldDef(type="datetime"),
        "quantity": FieldDef(type="number", default=1),
    },
    computed={
        "isLive": ComputedFieldDef(compute=_is_live),
    },
    relationships={
        "customer": RelationshipDef(
            model="stripeCustomer", direction="in", relationship="HAS_SUBSCRIPTION", cardinality="one"
        ),
        "prices": RelationshipDef(
            model="stripePrice", direction="out", relationship="USES_PRICE", cardinality="many"
        ),
    },
)


def register(registry: TypeRegistry) -> None:
    registry.register(stripe_subscription.token, stripe_subscription.metadata)
