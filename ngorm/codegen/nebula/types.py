"""
Nebula-specific type system for code generation.

Maps declared field types to nGQL column types and to the Python
expressions generated mappers use to write and read values.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from ..core.errors import UnsupportedTypeError
from ..core.schema import FieldModel

# Name under which generated modules import ``ngorm.base``
RUNTIME_ALIAS = "_ngorm"


class SemanticType(Enum):
    """Supported property types."""

    STRING = "string"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"


# Python spellings accepted in declarations
TYPE_ALIASES = {
    "str": SemanticType.STRING,
    "float": SemanticType.FLOAT64,
}


@dataclass(frozen=True)
class NebulaType:
    """
    Immutable mapping of one semantic type to its nGQL forms.

    ``literal_format`` and ``deserialize_format`` are Python expression
    templates with a single ``{expr}`` placeholder.
    """

    semantic: SemanticType
    ddl: str
    literal_format: str
    deserialize_format: str

    def literal(self, expr: str) -> str:
        """Expression rendering ``expr`` as an nGQL literal."""
        return self.literal_format.format(expr=expr)

    def deserialize(self, expr: str) -> str:
        """Expression reading a result value wrapper ``expr`` as this type."""
        return self.deserialize_format.format(expr=expr)


def _integer(semantic: SemanticType) -> NebulaType:
    return NebulaType(
        semantic=semantic,
        ddl=semantic.value,
        literal_format="str(int({expr}))",
        deserialize_format="int({expr}.as_int())",
    )


class TypeCodec:
    """Central mapping from declared type names to Nebula types."""

    def __init__(self):
        self._types = self._build_type_map()

    def _build_type_map(self) -> Dict[SemanticType, NebulaType]:
        return {
            SemanticType.STRING: NebulaType(
                semantic=SemanticType.STRING,
                ddl="string",
                literal_format=RUNTIME_ALIAS + ".quote({expr})",
                deserialize_format="str({expr}.as_string())",
            ),
            SemanticType.INT: _integer(SemanticType.INT),
            SemanticType.INT8: _integer(SemanticType.INT8),
            SemanticType.INT16: _integer(SemanticType.INT16),
            SemanticType.INT32: _integer(SemanticType.INT32),
            SemanticType.INT64: _integer(SemanticType.INT64),
            SemanticType.FLOAT32: NebulaType(
                semantic=SemanticType.FLOAT32,
                ddl="float",
                literal_format=RUNTIME_ALIAS + ".format_float32({expr})",
                deserialize_format="float({expr}.as_double())",
            ),
            SemanticType.FLOAT64: NebulaType(
                semantic=SemanticType.FLOAT64,
                ddl="double",
                literal_format=RUNTIME_ALIAS + ".format_float({expr})",
                deserialize_format="float({expr}.as_double())",
            ),
        }

    def semantic_type(self, type_name: str, owner: str = "") -> SemanticType:
        """
        Resolve a declared type name.

        Raises:
            UnsupportedTypeError: If the name has no mapping
        """
        if type_name in TYPE_ALIASES:
            return TYPE_ALIASES[type_name]
        try:
            return SemanticType(type_name)
        except ValueError:
            raise UnsupportedTypeError(type_name, owner) from None

    def resolve(self, type_name: str, owner: str = "") -> NebulaType:
        """Get the Nebula type for a declared type name."""
        return self._types[self.semantic_type(type_name, owner)]

    def for_field(self, field: FieldModel, entity_name: str = "") -> NebulaType:
        """Get the Nebula type for a field, naming it in errors."""
        owner = f"{entity_name}.{field.declared_name}" if entity_name else field.declared_name
        return self.resolve(field.type_name, owner)

    def literal(self, type_name: str, expr: str) -> str:
        return self.resolve(type_name).literal(expr)

    def deserialize(self, type_name: str, expr: str) -> str:
        return self.resolve(type_name).deserialize(expr)

    def ddl_type(self, type_name: str) -> str:
        return self.resolve(type_name).ddl


# Implicit identity columns
ID_TYPE = SemanticType.INT64
RANK_TYPE = SemanticType.INT
