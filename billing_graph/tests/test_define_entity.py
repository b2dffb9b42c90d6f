from __future__ import annotations

import pytest

from billing_graph.app.core.errors import MapperError
from billing_graph.app.core.settings import Settings
from billing_graph.app.helpers.define_entity import ComputedFieldDef, FieldDef, RelationshipDef, define_entity
from billing_graph.app.services.materializer.service import GraphMaterializer
from billing_graph.app.services.registry.registry import TypeRegistry

from .factories import node


@pytest.fixture
def note():
    return define_entity(
        token="note",
        label="Note",
        company_scoped=True,
        fields={
            "title": FieldDef(type="string", required=True),
            "body": FieldDef(type="string"),
            "pinned": FieldDef(type="boolean", default=False),
            "views": FieldDef(type="number"),
        },
        computed={
            "score": ComputedFieldDef(compute=lambda data, row, **_: row.get("noteScore", 0)),
        },
        relationships={
            "author": RelationshipDef(model="user", direction="in", relationship="WROTE", cardinality="one"),
            "tags": RelationshipDef(model="tag", direction="out", relationship="TAGGED", cardinality="many"),
        },
    )


class TestDescriptor:
    def test_derived_field_lists(self, note):
        assert note.token == "note"
        assert note.label == "Note"
        assert note.field_names == ["title", "body", "pinned", "views"]
        assert note.string_fields == ["title", "body"]
        assert note.required_fields == ["title"]
        assert note.field_defaults == {"pinned": False}

    def test_storage_hints(self, note):
        assert note.constraints == [{"property": "id", "type": "UNIQUE"}]
        assert note.fulltext_index_name == "note_search_index"
        assert note.indexes[0].properties == ["title", "body"]
        assert note.default_order_by == "updatedAt DESC"

    def test_no_string_fields_no_index(self):
        counter = define_entity(token="counter", label="Counter", fields={"value": FieldDef(type="number")})
        assert counter.indexes == []
        assert counter.fulltext_index_name == ""

    def test_children_from_relationships(self, note):
        assert note.metadata.single_children == ["company", "user"]
        assert note.metadata.many_children == ["tag"]

    def test_dynamic_patterns_carried(self):
        d = define_entity(
            token="doc", label="Doc", fields={}, dynamic_single_child_patterns=["{parent}_{*}"]
        )
        assert d.metadata.dynamic_single_child_patterns == ["{parent}_{*}"]
        assert d.metadata.dynamic_many_child_patterns == []


class TestGeneratedMapper:
    def test_maps_fields_defaults_computed_and_placeholders(self, note):
        data = {"id": "n1", "createdAt": "2024-01-01", "title": "Hello", "secret": "x", "labels": ["Note"]}

        entity = note.metadata.mapper(data, {"noteScore": 7}, None, "note")

        assert entity == {
            "id": "n1",
            "createdAt": "2024-01-01",
            "updatedAt": None,
            "title": "Hello",
            "body": None,
            "pinned": False,
            "views": None,
            "score": 7,
            "company": None,
            "user": None,
            "tag": [],
        }

    def test_missing_required_field(self, note):
        with pytest.raises(MapperError, match="title"):
            note.metadata.mapper({"id": "n1"}, {}, None, "note")

    def test_materialized_with_children(self, note):
        registry = TypeRegistry()
        registry.register(note.token, note.metadata)
        registry.register("user", define_entity(token="user", label="User", fields={"name": FieldDef(type="string")}).metadata)
        registry.register("tag", define_entity(token="tag", label="Tag", fields={"name": FieldDef(type="string")}).metadata)
        registry.register("company", define_entity(token="company", label="Company", fields={}).metadata)
        materializer = GraphMaterializer(registry=registry, settings=Settings())

        rows = [
            {"note": node("Note", "n1", title="T"), "note_user": node("User", "u1", name="Ann"), "note_tag": node("Tag", "t1")},
            {"note": node("Note", "n1", title="T"), "note_user": node("User", "u1"), "note_tag": node("Tag", "t2")},
        ]

        entity = materializer.materialize("note", rows)[0]

        assert entity["user"]["name"] == "Ann"
        assert [t["id"] for t in entity["tag"]] == ["t1", "t2"]
        assert entity["company"] is None
        assert entity["score"] == 0

    def test_mapper_error_aborts_materialization(self, note):
        registry = TypeRegistry([note.metadata])
        materializer = GraphMaterializer(registry=registry, settings=Settings())
        rows = [{"note": node("Note", "n1", title="ok")}, {"note": node("Note", "n2")}]
        with pytest.raises(MapperError):
            materializer.materialize("note", rows)
