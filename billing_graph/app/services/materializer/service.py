from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from billing_graph.app.core.errors import UnknownRootTypeError
from billing_graph.app.core.settings import Settings, get_settings
from billing_graph.app.models.graph import NodeRef, NodeValue, RelationshipValue, ResultRow, to_row
from billing_graph.app.models.registry import EntityMetadata, PatternMatch
from billing_graph.app.services.materializer.patterns import DYNAMIC_GROUP, PatternResolver
from billing_graph.app.services.registry.registry import TypeRegistry, type_registry

logger = logging.getLogger(__name__)

Entity = Dict[str, Any]

EDGE_PROPS_SUFFIX = "_edgePropsCollection"
EDGE_PROPS_PATTERN = "{parent}_{*}" + EDGE_PROPS_SUFFIX


@dataclass
class _MaterializationContext:
    # "<token>#<id>" -> entity, in first-seen order
    entities: Dict[str, Entity] = field(default_factory=dict)
    # node element id -> entity, for relationship endpoints
    by_element_id: Dict[str, Entity] = field(default_factory=dict)
    root_keys: Set[str] = field(default_factory=set)


def identity_key(meta: EntityMetadata, value: Any) -> Optional[str]:
    if isinstance(value, NodeValue):
        node_id = value.business_id
        return None if node_id is None else f"{meta.token}#{node_id}"
    if isinstance(value, RelationshipValue):
        rel_key = value.key
        return None if rel_key is None else f"{meta.token}#{rel_key}"
    return None


def mapper_data(value: Any) -> Dict[str, Any]:
    """Fresh property bag handed to a mapper; the row's own bag is never exposed."""
    if isinstance(value, NodeValue):
        return {**value.properties, "labels": sorted(value.labels)}
    return {**value.properties, "id": value.key, "type": value.type}


def generic_entity(value: Any) -> Optional[Entity]:
    """Untyped entity for dynamic columns no registered type claims."""
    if isinstance(value, NodeValue):
        return {"id": value.business_id, **value.properties, "labels": sorted(value.labels)}
    if isinstance(value, RelationshipValue):
        return {**value.properties, "id": value.key, "type": value.type}
    return None


def _assign(entity: Entity, field_name: str, child: Entity) -> None:
    if entity.get(field_name) is None:
        entity[field_name] = child


def _append(entity: Entity, field_name: str, child: Entity) -> None:
    items = entity.get(field_name)
    if not isinstance(items, list):
        items = []
        entity[field_name] = items
    child_id = child.get("id")
    for existing in items:
        if existing is child:
            return
        if child_id is not None and existing.get("id") == child_id:
            return
        if child_id is None and existing == child:
            return
    items.append(child)


class GraphMaterializer:
    """
    Rebuilds typed, deduplicated entity graphs from flat graph-query rows.

    Column naming contract:
      root column                 <root token>
      single/many child           <parent column>_<child token>
      dynamic child               whatever a declared pattern matches, e.g. {parent}_{*}
      edge-property collection    <parent column>_<relation>_edgePropsCollection

    Each call owns its identity map, so concurrent calls are independent.
    The registry is only read here.
    """

    def __init__(
        self,
        registry: Optional[TypeRegistry] = None,
        resolver: Optional[PatternResolver] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else type_registry
        self.resolver = resolver or PatternResolver(self.registry, cache_size=self.settings.pattern_cache_size)

    def materialize(self, root_type: str, rows: Iterable[Any]) -> List[Entity]:
        if self.settings.freeze_registry_on_use:
            self.registry.freeze()

        root = self.registry.resolve_by_token(root_type)
        if root is None:
            raise UnknownRootTypeError(root_type)

        ctx = _MaterializationContext()
        row_count = 0
        for item in rows:
            row = to_row(item)
            row_count += 1

            entity = self._hydrate(root, row, root.token, ctx)
            if entity is not None:
                root_key = identity_key(root, row.get(root.token))
                if root_key is not None:
                    ctx.root_keys.add(root_key)

            self._link_relationships(row, ctx)

        results = [entity for key, entity in ctx.entities.items() if key in ctx.root_keys]
        logger.debug(
            "Materialized %s: rows=%d entities=%d roots=%d", root.token, row_count, len(ctx.entities), len(results)
        )
        return results

    def materialize_one(self, root_type: str, rows: Iterable[Any]) -> Optional[Entity]:
        results = self.materialize(root_type, rows)
        return results[0] if results else None

    # ---------------------------------------------------------------------
    # Hydration
    # ---------------------------------------------------------------------

    def _hydrate(self, meta: EntityMetadata, row: ResultRow, column: str, ctx: _MaterializationContext) -> Optional[Entity]:
        value = row.get(column)
        if value is None:
            return None

        key = identity_key(meta, value)
        if key is None:
            return None

        entity = ctx.entities.get(key)
        if entity is None:
            entity = meta.mapper(mapper_data(value), row, self, column)
            ctx.entities[key] = entity
            if isinstance(value, NodeValue) and value.element_id:
                ctx.by_element_id.setdefault(value.element_id, entity)

        self._attach_static_children(meta, entity, row, column, ctx)
        self._attach_edge_props(entity, row, column)
        self._attach_dynamic_children(meta, entity, row, column, ctx)
        return entity

    def _attach_static_children(
        self, meta: EntityMetadata, entity: Entity, row: ResultRow, column: str, ctx: _MaterializationContext
    ) -> None:
        for token in meta.single_children:
            child_meta = self.registry.resolve_by_token(token)
            if child_meta is None:
                continue
            child = self._hydrate(child_meta, row, f"{column}_{child_meta.token}", ctx)
            if child is not None:
                _assign(entity, child_meta.token, child)

        for token in meta.many_children:
            child_meta = self.registry.resolve_by_token(token)
            if child_meta is None:
                continue
            child = self._hydrate(child_meta, row, f"{column}_{child_meta.token}", ctx)
            if child is not None:
                _append(entity, child_meta.token, child)

    def _attach_dynamic_children(
        self, meta: EntityMetadata, entity: Entity, row: ResultRow, column: str, ctx: _MaterializationContext
    ) -> None:
        columns = row.keys()

        for pattern in meta.dynamic_single_child_patterns:
            for match in self.resolver.resolve(pattern, column, columns):
                child = self._hydrate_match(match, row, ctx)
                if child is not None:
                    _assign(entity, match.segment, child)

        for pattern in meta.dynamic_many_child_patterns:
            for match in self.resolver.resolve(pattern, column, columns):
                child = self._hydrate_match(match, row, ctx)
                if child is not None:
                    _append(entity, match.segment, child)

    def _hydrate_match(self, match: PatternMatch, row: ResultRow, ctx: _MaterializationContext) -> Optional[Entity]:
        # token -> label -> generic
        if match.metadata is not None:
            return self._hydrate(match.metadata, row, match.column, ctx)

        value = row.get(match.column)
        if value is None:
            return None

        by_label = self.resolver.resolve_by_labels(value)
        if by_label is not None:
            return self._hydrate(by_label, row, match.column, ctx)

        return generic_entity(value)

    def _attach_edge_props(self, entity: Entity, row: ResultRow, column: str) -> None:
        matcher = self.resolver.compile(EDGE_PROPS_PATTERN, column)
        for key in row.keys():
            m = matcher.match(key)
            if not m:
                continue
            collection = row.get(key)
            if not isinstance(collection, list):
                continue

            folded: Dict[str, Any] = {}
            for item in collection:
                if not isinstance(item, Mapping):
                    continue
                node_id = item.get("nodeId")
                edge_props = item.get("edgeProps")
                if node_id and edge_props is not None:
                    folded[node_id] = edge_props
            if not folded:
                continue

            field_name = f"{m.group(DYNAMIC_GROUP)}EdgeProps"
            existing = entity.get(field_name)
            if isinstance(existing, dict):
                for node_id, edge_props in folded.items():
                    existing.setdefault(node_id, edge_props)
            else:
                entity[field_name] = folded

    # ---------------------------------------------------------------------
    # Relationship cross-linking
    # ---------------------------------------------------------------------

    def _link_relationships(self, row: ResultRow, ctx: _MaterializationContext) -> None:
        for column in row.keys():
            value = row.get(column)
            if not isinstance(value, RelationshipValue):
                continue

            meta = self.registry.resolve_by_token(column.rsplit("_", 1)[-1])
            if meta is None:
                continue
            key = identity_key(meta, value)
            if key is None:
                continue

            entity = ctx.entities.get(key)
            if entity is None:
                entity = meta.mapper(mapper_data(value), row, self, column)
                ctx.entities[key] = entity

            if value.start_node is not None and entity.get("startNode") is None:
                start = self._resolve_endpoint(value.start_node, ctx)
                if start is not None:
                    entity["startNode"] = start
            if value.end_node is not None and entity.get("endNode") is None:
                end = self._resolve_endpoint(value.end_node, ctx)
                if end is not None:
                    entity["endNode"] = end

    def _resolve_endpoint(self, ref: NodeRef, ctx: _MaterializationContext) -> Optional[Entity]:
        if ref.element_id and ref.element_id in ctx.by_element_id:
            return ctx.by_element_id[ref.element_id]
        if ref.business_id is None:
            return None
        meta = self.resolver.resolve_by_labels(ref)
        if meta is None:
            return None
        return ctx.entities.get(f"{meta.token}#{ref.business_id}")
