"""
Entity model shared by extraction and emission.

Extraction builds these values once per scan; emission only reads them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class EntityKind(Enum):
    """Graph role of a declared class."""

    VERTEX = "vertex"
    EDGE = "edge"
    PLAIN = "plain"  # Not a graph entity; never emitted


# Names of the implicit identity columns per entity kind
IDENTITY_FIELD = "id"
EDGE_ENDPOINT_FIELDS = ("src", "dst", "rank")


@dataclass(frozen=True)
class FieldModel:
    """Represents a single declared property."""

    declared_name: str
    external_name: str
    type_name: str  # Declared annotation name, resolved by the type codec
    comment: str = ""
    indexed: bool = False
    index_target: str = ""
    lineno: int = 0

    @property
    def index_columns(self) -> str:
        """Column list of the index; the field alone when no target is given."""
        return self.index_target or self.external_name


@dataclass(frozen=True)
class EntityModel:
    """Represents one declared class and its graph role."""

    declared_name: str
    external_name: str
    kind: EntityKind
    module: str
    fields: Tuple[FieldModel, ...] = field(default_factory=tuple)
    description: Optional[str] = None
    filename: str = ""
    lineno: int = 0

    @property
    def is_vertex(self) -> bool:
        return self.kind is EntityKind.VERTEX

    @property
    def is_edge(self) -> bool:
        return self.kind is EntityKind.EDGE

    @property
    def is_graph_entity(self) -> bool:
        return self.kind is not EntityKind.PLAIN

    @property
    def field_names(self) -> List[str]:
        return [f.external_name for f in self.fields]

    @property
    def indexed_fields(self) -> List[FieldModel]:
        return [f for f in self.fields if f.indexed]


def graph_entities(entities: List[EntityModel]) -> List[EntityModel]:
    """Vertices and edges in model order."""
    return [e for e in entities if e.is_graph_entity]


def summarize(entities: List[EntityModel]) -> Dict[str, int]:
    """Count entities per kind."""
    summary = {kind.value: 0 for kind in EntityKind}
    for entity in entities:
        summary[entity.kind.value] += 1
    summary["total"] = len(entities)
    return summary
