from __future__ import annotations

from billing_graph.app.helpers.define_entity import FieldDef, define_entity
from billing_graph.app.services.registry.registry import TypeRegistry

company = define_entity(
    token="company",
    label="Company",
    fields={
        "name": FieldDef(type="string", required=True),
        "configurations": FieldDef(type="json"),
    },
)


def register(registry: TypeRegistry) -> None:
    registry.register(company.token, company.metadata)
