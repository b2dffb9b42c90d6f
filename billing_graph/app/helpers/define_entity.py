from __future__ import annotations

from typing import Any, Callable, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from billing_graph.app.core.errors import MapperError
from billing_graph.app.models.registry import EntityMetadata

CypherType = Literal[
    "string", "number", "boolean", "date", "datetime", "json",
    "string[]", "number[]", "boolean[]", "date[]", "datetime[]", "json[]",
]

BASE_FIELDS = ("id", "createdAt", "updatedAt")
COMPANY_TOKEN = "company"


class FieldDef(BaseModel):
    type: CypherType
    required: bool = False
    default: Optional[Any] = None


class ComputedFieldDef(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # compute(data=..., row=..., materializer=..., column=...) -> value
    compute: Callable[..., Any]


class RelationshipDef(BaseModel):
    # token of the related entity type
    model: str
    # 'in' = (related)-[:REL]->(this), 'out' = (this)-[:REL]->(related)
    direction: Literal["in", "out"]
    relationship: str
    cardinality: Literal["one", "many"]


class IndexDef(BaseModel):
    name: str
    properties: List[str]
    type: Literal["FULLTEXT", "RANGE"] = "FULLTEXT"


class EntityDescriptor(BaseModel):
    """Everything derived from a declarative entity definition."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    metadata: EntityMetadata
    company_scoped: bool = False
    fields: Dict[str, FieldDef] = {}
    relationships: Dict[str, RelationshipDef] = {}
    computed: Dict[str, ComputedFieldDef] = {}

    field_names: List[str] = []
    string_fields: List[str] = []
    required_fields: List[str] = []
    field_defaults: Dict[str, Any] = {}

    constraints: List[Dict[str, str]] = Field(default_factory=lambda: [{"property": "id", "type": "UNIQUE"}])
    indexes: List[IndexDef] = []
    fulltext_index_name: str = ""
    default_order_by: str = "updatedAt DESC"

    @property
    def token(self) -> str:
        return self.metadata.token

    @property
    def label(self) -> str:
        return self.metadata.label


def _build_mapper(
    token: str,
    fields: Dict[str, FieldDef],
    computed: Dict[str, ComputedFieldDef],
    relationships: Dict[str, RelationshipDef],
    company_scoped: bool,
) -> Callable[..., Dict[str, Any]]:
    required = [name for name, d in fields.items() if d.required]

    def mapper(data: Dict[str, Any], row: Any, materializer: Any, column: str) -> Dict[str, Any]:
        missing = [name for name in required if data.get(name) is None]
        if missing:
            raise MapperError(token, f"missing required properties: {', '.join(missing)}")

        result: Dict[str, Any] = {name: data.get(name) for name in BASE_FIELDS}
        for name, d in fields.items():
            value = data.get(name)
            result[name] = d.default if value is None else value

        for name, c in computed.items():
            result[name] = c.compute(data=data, row=row, materializer=materializer, column=column)

        if company_scoped:
            result[COMPANY_TOKEN] = None
        # placeholders are keyed by the related token, which is where children land
        for rel in relationships.values():
            result[rel.model] = [] if rel.cardinality == "many" else None
        return result

    return mapper


def define_entity(
    token: str,
    label: str,
    fields: Dict[str, FieldDef],
    relationships: Optional[Dict[str, RelationshipDef]] = None,
    computed: Optional[Dict[str, ComputedFieldDef]] = None,
    company_scoped: bool = False,
    dynamic_single_child_patterns: Sequence[str] = (),
    dynamic_many_child_patterns: Sequence[str] = (),
) -> EntityDescriptor:
    """
    Builds registry metadata and storage hints from a declarative definition.

    - mapper copies base fields (id, createdAt, updatedAt), declared fields
      (falling back to their defaults) and computed fields, and seeds
      relationship placeholders (None for 'one', [] for 'many')
    - 'one' relationships (and `company` when company scoped) become single
      children, 'many' relationships become many children
    - string fields feed a FULLTEXT index named <token>_search_index

    Example:
        price = define_entity(
            token="stripePrice",
            label="StripePrice",
            fields={"currency": FieldDef(type="string", required=True)},
            relationships={
                "product": RelationshipDef(model="stripeProduct", direction="out",
                                           relationship="BELONGS_TO_PRODUCT", cardinality="one"),
            },
        )
        registry.register(price.token, price.metadata)
    """
    relationships = relationships or {}
    computed = computed or {}

    single_children: List[str] = [COMPANY_TOKEN] if company_scoped else []
    many_children: List[str] = []
    for rel in relationships.values():
        if rel.cardinality == "one":
            single_children.append(rel.model)
        else:
            many_children.append(rel.model)

    metadata = EntityMetadata(
        token=token,
        label=label,
        mapper=_build_mapper(token, fields, computed, relationships, company_scoped),
        single_children=single_children,
        many_children=many_children,
        dynamic_single_child_patterns=list(dynamic_single_child_patterns),
        dynamic_many_child_patterns=list(dynamic_many_child_patterns),
    )

    string_fields = [name for name, d in fields.items() if d.type == "string"]
    fulltext_index_name = f"{token}_search_index" if string_fields else ""

    return EntityDescriptor(
        metadata=metadata,
        company_scoped=company_scoped,
        fields=fields,
        relationships=relationships,
        computed=computed,
        field_names=list(fields),
        string_fields=string_fields,
        required_fields=[name for name, d in fields.items() if d.required],
        field_defaults={name: d.default for name, d in fields.items() if d.default is not None},
        indexes=[IndexDef(name=fulltext_index_name, properties=string_fields)] if string_fields else [],
        fulltext_index_name=fulltext_index_name,
    )
