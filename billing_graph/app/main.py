from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, get_args

from billing_graph.app.bootstrap import register_all
from billing_graph.app.core.settings import LogLevel, Settings, get_settings
from billing_graph.app.models.graph import ResultRow
from billing_graph.app.services.materializer.service import GraphMaterializer
from billing_graph.app.services.registry.registry import TypeRegistry

BACK_REFERENCES = ("startNode", "endNode")


def to_jsonable(value: Any, _stack: Optional[List[int]] = None) -> Any:
    """Renders an entity graph for output; back-references and cycles become {"id": ...} stubs."""
    stack = _stack if _stack is not None else []
    if isinstance(value, dict):
        if id(value) in stack:
            return {"id": value.get("id")}
        stack.append(id(value))
        out: Dict[str, Any] = {}
        for k, v in value.items():
            if k in BACK_REFERENCES and isinstance(v, dict):
                out[k] = {"id": v.get("id")}
            else:
                out[k] = to_jsonable(v, stack)
        stack.pop()
        return out
    if isinstance(value, list):
        return [to_jsonable(v, stack) for v in value]
    return value


def load_rows(path: Path) -> List[ResultRow]:
    raw = json.loads(path.read_text("utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON array of rows")
    return [ResultRow.from_json(r) for r in raw]


def cmd_types(registry: TypeRegistry) -> Dict[str, Any]:
    return {
        meta.token: {
            "label": meta.label,
            "single_children": meta.single_children,
            "many_children": meta.many_children,
            "dynamic_single_child_patterns": meta.dynamic_single_child_patterns,
            "dynamic_many_child_patterns": meta.dynamic_many_child_patterns,
        }
        for meta in registry.entries()
    }


def cmd_materialize(registry: TypeRegistry, settings: Settings, root_type: str, rows_file: Path) -> List[Any]:
    materializer = GraphMaterializer(registry=registry, settings=settings)
    return to_jsonable(materializer.materialize(root_type, load_rows(rows_file)))


def cli(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Billing graph materialization CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("types", help="List registered entity types")

    mat = sub.add_parser("materialize", help="Materialize a JSON array of result rows")
    mat.add_argument("root_type", help="Root type token, e.g. stripeSubscription")
    mat.add_argument("rows", help="Path to JSON file with result rows")

    parser.add_argument(
        "--log-level", type=str.upper, choices=get_args(LogLevel), default=None, help="Overrides BILLING_GRAPH_LOG_LEVEL"
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.log_level:
        settings.log_level = args.log_level
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    registry = register_all(TypeRegistry())

    if args.command == "types":
        result: Any = cmd_types(registry)
    else:
        result = cmd_materialize(registry, settings, args.root_type, Path(args.rows))
    print(json.dumps(result, ensure_ascii=False, indent=2, default=str))


if __name__ == "__main__":
    cli()
