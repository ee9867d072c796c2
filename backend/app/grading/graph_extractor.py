from collections.abc import Mapping
from typing import Any

from app.grading.artifacts import GraphEdge, GraphNode, LogicalGraph, ShapeType

# Canvas props that only describe how a shape looks.
VISUAL_PROP_KEYS = frozenset({
    "w",
    "h",
    "color",
    "fill",
    "dash",
    "size",
    "font",
    "align",
    "verticalAlign",
    "growY",
    "url",
    "opacity",
})


def _record_store(snapshot: Any) -> Mapping[str, Any] | None:
    if not isinstance(snapshot, Mapping):
        return None
    store = snapshot.get("store")
    if store is None:
        # Full editor snapshots nest the store under "document".
        document = snapshot.get("document")
        if isinstance(document, Mapping):
            store = document.get("store")
    return store if isinstance(store, Mapping) else None


def extract_semantic_props(props: Any) -> dict[str, Any]:
    """Drop visual-only keys, keep everything else untouched. Non-string keys are skipped."""
    if not isinstance(props, Mapping):
        return {}
    return {
        key: value
        for key, value in props.items()
        if isinstance(key, str) and key not in VISUAL_PROP_KEYS
    }


def extract_logical_graph(snapshot: Any) -> LogicalGraph:
    """
    Convert a canvas snapshot into the logical graph sent to the grader.

    Non-arrow shapes become nodes and each arrow whose start and end are both
    bound to something becomes a directed edge. Malformed input degrades to an
    empty graph instead of raising.
    """
    store = _record_store(snapshot)
    if store is None:
        return LogicalGraph()

    shapes: list[tuple[str, Mapping[str, Any]]] = []
    bindings: list[Mapping[str, Any]] = []
    for key, record in store.items():
        if not isinstance(record, Mapping):
            continue
        type_name = record.get("typeName")
        if type_name == "shape":
            shapes.append((key, record))
        elif type_name == "binding":
            bindings.append(record)

    nodes: list[GraphNode] = []
    for key, shape in shapes:
        shape_type = shape.get("type")
        if shape_type == ShapeType.ARROW.value:
            continue
        nodes.append(
            GraphNode(
                id=str(shape.get("id") or key),
                type=str(shape_type) if shape_type else "unknown",
                props=extract_semantic_props(shape.get("props")),
            )
        )

    # Each arrow carries one binding per terminal.
    terminals: dict[str, dict[str, str]] = {}
    for binding in bindings:
        arrow_id = binding.get("fromId")
        target_id = binding.get("toId")
        if not arrow_id or not target_id:
            continue
        props = binding.get("props")
        terminal = props.get("terminal") if isinstance(props, Mapping) else None
        arrow = terminals.setdefault(str(arrow_id), {})
        if terminal in ("start", "end"):
            arrow[terminal] = str(target_id)

    edges = [
        GraphEdge(from_=arrow["start"], to=arrow["end"])
        for arrow in terminals.values()
        if "start" in arrow and "end" in arrow
    ]

    return LogicalGraph(nodes=nodes, edges=edges)
