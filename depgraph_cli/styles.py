"""Presentation hints for rendering surfaces: colours, labels and node sizes."""

from __future__ import annotations

from typing import Dict

from .models import ArtifactType, LinkKind

TARGET_COLOR = "#DC2626"
CROSS_REPO_BORDER = "#FEF08A"
DEFAULT_COLOR = "#6B7280"

NODE_COLORS: Dict[ArtifactType, str] = {
    ArtifactType.PRIMARY_UNIT: "#3B82F6",
    ArtifactType.TRIGGER: "#EF4444",
    ArtifactType.UI_COMPONENT: "#10B981",
    ArtifactType.TEST: "#8B5CF6",
    ArtifactType.FLOW: "#F59E0B",
}

EDGE_COLORS: Dict[LinkKind, str] = {
    LinkKind.METHOD_CALL: "#3B82F6",
    LinkKind.SOQL_QUERY: "#DC2626",
    LinkKind.DATABASE_OPERATION: "#059669",
    LinkKind.SCHEMA_REFERENCE: "#7C3AED",
    LinkKind.TRIGGER_CONTEXT: "#EA580C",
    LinkKind.WIRE_SERVICE: "#0891B2",
    LinkKind.TESTS: "#BE185D",
}

LINK_LABELS: Dict[LinkKind, str] = {
    LinkKind.IMPORT: "Import",
    LinkKind.EXTENDS: "Extends",
    LinkKind.IMPLEMENTS: "Implements",
    LinkKind.REFERENCES: "References",
    LinkKind.TESTS: "Test Coverage",
    LinkKind.METHOD_CALL: "Method Call",
    LinkKind.WIRE: "Wire",
    LinkKind.IMPERATIVE_APEX: "Imperative Apex",
    LinkKind.SOQL_QUERY: "SOQL Query",
    LinkKind.DATABASE_OPERATION: "Database Op",
    LinkKind.SCHEMA_REFERENCE: "Schema Ref",
    LinkKind.FIELD_REFERENCE: "Field Ref",
    LinkKind.TRIGGER_CONTEXT: "Trigger Context",
    LinkKind.SYSTEM_METHOD: "System Method",
    LinkKind.CUSTOM_SETTINGS: "Custom Settings",
    LinkKind.WIRE_SERVICE: "Wire Service",
}

# Links drawn animated: they touch persisted data.
ANIMATED_KINDS = frozenset({LinkKind.SOQL_QUERY, LinkKind.DATABASE_OPERATION})


def node_color(artifact_type: ArtifactType, is_target: bool = False) -> str:
    if is_target:
        return TARGET_COLOR
    return NODE_COLORS.get(artifact_type, DEFAULT_COLOR)


def edge_color(kind: LinkKind) -> str:
    return EDGE_COLORS.get(kind, DEFAULT_COLOR)


def link_label(kind: LinkKind) -> str:
    return LINK_LABELS.get(kind, kind.value)


def node_dimensions(node_count: int) -> Dict[str, int]:
    """Shrink node boxes as the graph grows."""
    if node_count > 50:
        return {"width": 80, "font_size": 10, "padding": 4}
    if node_count > 30:
        return {"width": 100, "font_size": 11, "padding": 6}
    if node_count > 15:
        return {"width": 120, "font_size": 12, "padding": 8}
    return {"width": 140, "font_size": 13, "padding": 10}
