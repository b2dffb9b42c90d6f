from __future__ import annotations

from billing_graph.app.helpers.define_entity import FieldDef, RelationshipDef, define_entity
from billing_graph.app.services.registry.registry import TypeRegistry

stripe_invoice = define_entity(
    token="stripeInvoice",
    label="StripeInvoice",
    fields={
        "stripeInvoiceId": FieldDef(type="string", required=True),
        "stripeInvoiceNumber": FieldDef(type="string"),
        "status": FieldDef(type="string", required=True),
        "currency": FieldDef(type="string"),
        "amountDue": FieldDef(type="number", default=0),
        "amountPaid": FieldDef(type="number", default=0),
        "amountRemaining": FieldDef(type="number", default=0),
        "subtotal": FieldDef(type="number"),
        "total": FieldDef(type="number"),
        "tax": FieldDef(type="number"),
        "periodStart": FieldDef(type="datetime"),
        "periodEnd": FieldDef(type="datetime"),
        "paidAt": FieldDef(type="datetime"),
        "attemptCount": FieldDef(type="number", default=0),
        "attempted": FieldDef(type="boolean", default=False),
    },
    relationships={
        "customer": RelationshipDef(
            model="stripeCustomer", direction="in", relationship="HAS_INVOICE", cardinality="one"
        ),
        "subscription": RelationshipDef(
            model="stripeSubscription", direction="out", relationship="FOR_SUBSCRIPTION", cardinality="one"
        ),
    },
    # invoice lines returned as <invoice>_line_<token>, grouped by the line's type
    dynamic_many_child_patterns=["{parent}_line_{*}"],
)


def register(registry: TypeRegistry) -> None:
    registry.register(stripe_invoice.token, stripe_invoice.metadata)
