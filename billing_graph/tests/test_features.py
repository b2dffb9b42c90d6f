from __future__ import annotations

import pytest

from billing_graph.app.bootstrap import FEATURES, register_all
from billing_graph.app.core.errors import RegistryFrozenError
from billing_graph.app.core.settings import Settings
from billing_graph.app.services.materializer.service import GraphMaterializer
from billing_graph.app.services.registry.registry import TypeRegistry

from .factories import node


@pytest.fixture
def billing_registry() -> TypeRegistry:
    return register_all(TypeRegistry())


@pytest.fixture
def billing(billing_registry) -> GraphMaterializer:
    return GraphMaterializer(registry=billing_registry, settings=Settings())


def _subscription_row(price_id, product_id):
    return {
        "stripeSubscription": node(
            "StripeSubscription", "sub-1", stripeSubscriptionId="sub_123", status="trialing"
        ),
        "stripeSubscription_stripeCustomer": node("StripeCustomer", "cus-1", stripeCustomerId="cus_123", email="a@b.c"),
        "stripeSubscription_stripeCustomer_company": node("Company", "co-1", name="Acme"),
        "stripeSubscription_stripePrice": node(
            "StripePrice", price_id, stripePriceId=f"stripe_{price_id}", currency="eur", unitAmount=1000
        ),
        "stripeSubscription_stripePrice_stripeProduct": node(
            "StripeProduct", product_id, stripeProductId=f"stripe_{product_id}", name="Pro"
        ),
    }


class TestBootstrap:
    def test_all_features_registered(self, billing_registry):
        assert len(billing_registry) == len(FEATURES)
        assert billing_registry.tokens() == [
            "company",
            "stripeCustomer",
            "stripeProduct",
            "stripePrice",
            "stripeSubscription",
            "stripeInvoice",
            "stripeUsageRecord",
        ]
        assert billing_registry.resolve_by_label("StripeInvoice").token == "stripeInvoice"

    def test_registration_closed_after_first_use(self, billing_registry, billing):
        billing.materialize("stripePrice", [])
        with pytest.raises(RegistryFrozenError):
            register_all(billing_registry)


class TestBillingGraphs:
    def test_subscription_graph(self, billing):
        rows = [_subscription_row("price-a", "prod-1"), _subscription_row("price-b", "prod-1")]

        (sub,) = billing.materialize("stripeSubscription", rows)

        assert sub["stripeSubscriptionId"] == "sub_123"
        assert sub["isLive"] is True
        assert sub["cancelAtPeriodEnd"] is False
        assert sub["stripeCustomer"]["email"] == "a@b.c"
        assert sub["stripeCustomer"]["company"]["name"] == "Acme"
        assert [p["id"] for p in sub["stripePrice"]] == ["price-a", "price-b"]
        assert sub["stripePrice"][0]["stripeProduct"] is sub["stripePrice"][1]["stripeProduct"]
        assert sub["stripePrice"][0]["priceType"] == "recurring"

    def test_invoice_lines_grouped_by_type(self, billing):
        base = {
            "stripeInvoice": node("StripeInvoice", "inv-1", stripeInvoiceId="in_1", status="open"),
            "stripeInvoice_stripeCustomer": node("StripeCustomer", "cus-1", stripeCustomerId="cus_123"),
        }
        rows = [
            {**base, "stripeInvoice_line_stripePrice": node("StripePrice", "price-a", stripePriceId="p_a", currency="eur")},
            {**base, "stripeInvoice_line_stripePrice": node("StripePrice", "price-b", stripePriceId="p_b", currency="eur")},
            {**base, "stripeInvoice_line_adjustment": node("Adjustment", "adj-1", amount=-200)},
        ]

        (invoice,) = billing.materialize("stripeInvoice", rows)

        assert invoice["amountDue"] == 0
        assert invoice["stripeCustomer"]["stripeCustomerId"] == "cus_123"
        assert [p["stripePriceId"] for p in invoice["stripePrice"]] == ["p_a", "p_b"]
        assert invoice["adjustment"] == [{"id": "adj-1", "amount": -200, "labels": ["Adjustment"]}]
