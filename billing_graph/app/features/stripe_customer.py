from __future__ import annotations

from billing_graph.app.helpers.define_entity import FieldDef, define_entity
from billing_graph.app.services.registry.registry import TypeRegistry

stripe_customer = define_entity(
    token="stripeCustomer",
    label="StripeCustomer",
    company_scoped=True,
    fields={
        "stripeCustomerId": FieldDef(type="string", required=True),
        "email": FieldDef(type="string"),
        "name": FieldDef(type="string"),
        "currency": FieldDef(type="string", default="eur"),
        "balance": FieldDef(type="number", default=0),
        "delinquent": FieldDef(type="boolean", default=False),
        "defaultPaymentMethodId": FieldDef(type="string"),
    },
)


def register(registry: TypeRegistry) -> None:
    registry.register(stripe_customer.token, stripe_customer.metadata)
