"""Core data models for one dependency analysis: nodes, links and metadata.

An :class:`AnalysisResult` is the immutable unit of input for resolution,
indexing, layout and filtering.  It is normally built from the JSON shape
emitted by the discovery service via :meth:`AnalysisResult.from_dict`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class InvalidGraphError(ValueError):
    """Raised for structurally invalid analysis input (e.g. a node without an id)."""


class ArtifactType(str, Enum):
    PRIMARY_UNIT = "apex"
    TRIGGER = "trigger"
    UI_COMPONENT = "lwc"
    TEST = "test"
    FLOW = "flow"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ArtifactType":
        if not value:
            return cls.OTHER
        key = str(value).strip().lower()
        key = _ARTIFACT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.OTHER


_ARTIFACT_ALIASES = {
    "class": "apex",
    "component": "lwc",
}


class LinkKind(str, Enum):
    IMPORT = "import"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    REFERENCES = "references"
    TESTS = "tests"
    METHOD_CALL = "method-call"
    WIRE = "wire"
    IMPERATIVE_APEX = "imperative-apex"
    SOQL_QUERY = "soql-query"
    DATABASE_OPERATION = "database-operation"
    SCHEMA_REFERENCE = "schema-reference"
    FIELD_REFERENCE = "field-reference"
    TRIGGER_CONTEXT = "trigger-context"
    SYSTEM_METHOD = "system-method"
    CUSTOM_SETTINGS = "custom-settings"
    WIRE_SERVICE = "wire-service"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LinkKind":
        if not value:
            return cls.REFERENCES
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.debug("Unknown link kind %r treated as 'references'", value)
            return cls.REFERENCES


def repository_of(node_id: str) -> str:
    """Repository component of a ``"<repository>:<path>"`` node id."""
    if not node_id:
        return ""
    return node_id.split(":", 1)[0] if ":" in node_id else ""


@dataclass(frozen=True)
class Node:
    node_id: str
    name: str
    path: str
    repository_id: str
    artifact_type: ArtifactType = ArtifactType.OTHER
    size_bytes: Optional[int] = None
    methods: Tuple[str, ...] = ()
    properties: Tuple[str, ...] = ()
    is_interface: bool = False
    is_abstract: bool = False
    namespace: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Node":
        if not isinstance(payload, Mapping):
            raise InvalidGraphError(f"Node entry must be a mapping, got {type(payload).__name__}")
        node_id = payload.get("id") or payload.get("node_id")
        if not node_id or not isinstance(node_id, str):
            raise InvalidGraphError(f"Node without an id: {dict(payload)!r}")

        path = str(payload.get("path") or node_id.split(":", 1)[-1])
        name = payload.get("name") or path.rsplit("/", 1)[-1]
        repository = (
            payload.get("repositoryId")
            or payload.get("repository_id")
            or payload.get("repo")
            or repository_of(node_id)
        )
        size = payload.get("sizeBytes", payload.get("size_bytes", payload.get("size")))
        return cls(
            node_id=node_id,
            name=str(name),
            path=path,
            repository_id=str(repository),
            artifact_type=ArtifactType.parse(payload.get("artifactType") or payload.get("type")),
            size_bytes=int(size) if isinstance(size, (int, float)) else None,
            methods=tuple(payload.get("methods") or ()),
            properties=tuple(payload.get("properties") or ()),
            is_interface=bool(payload.get("isInterface", False)),
            is_abstract=bool(payload.get("isAbstract", False)),
            namespace=payload.get("namespace"),
            url=payload.get("url"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.node_id,
            "name": self.name,
            "path": self.path,
            "repositoryId": self.repository_id,
            "type": self.artifact_type.value,
        }
        if self.size_bytes is not None:
            data["sizeBytes"] = self.size_bytes
        if self.methods:
            data["methods"] = list(self.methods)
        if self.properties:
            data["properties"] = list(self.properties)
        if self.is_interface:
            data["isInterface"] = True
        if self.is_abstract:
            data["isAbstract"] = True
        if self.namespace:
            data["namespace"] = self.namespace
        if self.url:
            data["url"] = self.url
        return data


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    kind: LinkKind = LinkKind.REFERENCES
    strength: float = 1.0
    source_method: Optional[str] = None
    target_method: Optional[str] = None
    line_number: Optional[int] = None
    code_snippet: Optional[str] = None
    context_lines: Tuple[str, ...] = ()
    details: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Link":
        if not isinstance(payload, Mapping):
            raise InvalidGraphError(f"Link entry must be a mapping, got {type(payload).__name__}")
        source = payload.get("source")
        target = payload.get("target")
        if not source or not target:
            raise InvalidGraphError(f"Link without source or target: {dict(payload)!r}")

        strength = payload.get("strength", 1.0)
        line = payload.get("lineNumber", payload.get("line_number"))
        return cls(
            source=str(source),
            target=str(target),
            kind=LinkKind.parse(payload.get("kind") or payload.get("type")),
            strength=float(strength) if isinstance(strength, (int, float)) else 1.0,
            source_method=payload.get("sourceMethod"),
            target_method=payload.get("targetMethod"),
            line_number=int(line) if isinstance(line, (int, float)) else None,
            code_snippet=payload.get("codeSnippet"),
            context_lines=tuple(payload.get("contextLines") or ()),
            details=payload.get("details"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "source": self.source,
            "target": self.target,
            "type": self.kind.value,
            "strength": self.strength,
        }
        optional = {
            "sourceMethod": self.source_method,
            "targetMethod": self.target_method,
            "lineNumber": self.line_number,
            "codeSnippet": self.code_snippet,
            "details": self.details,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.context_lines:
            data["contextLines"] = list(self.context_lines)
        return data


@dataclass(frozen=True)
class AnalysisMetadata:
    repositories: Tuple[str, ...] = ()
    analyzed_file: str = ""
    analysis_depth: int = 0
    timestamp: Optional[str] = None
    node_count: Optional[int] = None
    link_count: Optional[int] = None
    cross_repo_link_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    _KNOWN_KEYS = (
        "repositories",
        "analyzedFile",
        "analysisDepth",
        "timestamp",
        "nodeCount",
        "linkCount",
        "crossRepoLinkCount",
    )

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "AnalysisMetadata":
        if not payload:
            return cls()
        if not isinstance(payload, Mapping):
            raise InvalidGraphError("Analysis metadata must be a mapping")
        depth = payload.get("analysisDepth", 0)
        return cls(
            repositories=tuple(str(r) for r in payload.get("repositories") or ()),
            analyzed_file=str(payload.get("analyzedFile") or ""),
            analysis_depth=int(depth) if isinstance(depth, (int, float)) else 0,
            timestamp=payload.get("timestamp"),
            node_count=payload.get("nodeCount"),
            link_count=payload.get("linkCount"),
            cross_repo_link_count=payload.get("crossRepoLinkCount"),
            extra={k: v for k, v in payload.items() if k not in cls._KNOWN_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update(
            {
                "repositories": list(self.repositories),
                "analyzedFile": self.analyzed_file,
                "analysisDepth": self.analysis_depth,
            }
        )
        optional = {
            "timestamp": self.timestamp,
            "nodeCount": self.node_count,
            "linkCount": self.link_count,
            "crossRepoLinkCount": self.cross_repo_link_count,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass(frozen=True)
class AnalysisResult:
    """Nodes, links and metadata of one analysis run.

    Node ids are unique; links may still reference ids that are not in
    ``nodes`` (dangling links) and consumers are expected to skip them.
    """

    nodes: Tuple[Node, ...] = ()
    links: Tuple[Link, ...] = ()
    metadata: AnalysisMetadata = field(default_factory=AnalysisMetadata)

    def __post_init__(self) -> None:
        seen = set()
        for node in self.nodes:
            if node.node_id in seen:
                raise InvalidGraphError(f"Duplicate node id: {node.node_id}")
            seen.add(node.node_id)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AnalysisResult":
        if not isinstance(payload, Mapping):
            raise InvalidGraphError("Analysis result must be a mapping")
        return cls(
            nodes=tuple(Node.from_dict(n) for n in payload.get("nodes") or ()),
            links=tuple(Link.from_dict(l) for l in payload.get("links") or ()),
            metadata=AnalysisMetadata.from_dict(payload.get("metadata")),
        )

    @classmethod
    def build(
        cls,
        nodes: Iterable[Node],
        links: Iterable[Link] = (),
        metadata: Optional[AnalysisMetadata] = None,
    ) -> "AnalysisResult":
        return cls(nodes=tuple(nodes), links=tuple(links), metadata=metadata or AnalysisMetadata())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
            "metadata": self.metadata.to_dict(),
        }

    @property
    def node_ids(self) -> List[str]:
        return [n.node_id for n in self.nodes]

    def node_map(self) -> Dict[str, Node]:
        return {n.node_id: n for n in self.nodes}

    def get_node(self, node_id: Optional[str]) -> Optional[Node]:
        if not node_id:
            return None
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        return None

    @property
    def is_empty(self) -> bool:
        return not self.nodes


@dataclass(frozen=True)
class Position:
    node_id: str
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)
