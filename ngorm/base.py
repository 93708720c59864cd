"""
Runtime support for declared graph entities and generated mappers.

Declarations subclass ``Tag`` (vertices) or ``Edge`` (relationships) and
annotate their properties with the scalar aliases defined here. Generated
mapper modules import this module as ``_ngorm`` for result checking and
literal formatting.
"""

import inspect
import math
import struct
from dataclasses import dataclass
from typing import Any, Dict, Optional

from . import idgen

# Scalar aliases usable in declarations. They only document the graph column
# type; at runtime every integer is an int and every float is a float.
string = str
int8 = int
int16 = int
int32 = int
int64 = int
float32 = float
float64 = float

_ZERO_VALUES = {
    "str": "",
    "string": "",
    "int": 0,
    "int8": 0,
    "int16": 0,
    "int32": 0,
    "int64": 0,
    "float": 0.0,
    "float32": 0.0,
    "float64": 0.0,
}


class QueryError(Exception):
    """Raised by generated code when a statement does not succeed."""

    def __init__(self, nql: str, error_code: Any, error_msg: Any):
        self.nql = nql
        self.error_code = error_code
        self.error_msg = error_msg
        super().__init__(f"{nql}, ErrorCode: {error_code}, ErrorMsg: {error_msg}")


class UnknownFieldError(KeyError):
    """Raised by generated code when asked for a field the entity lacks."""

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity} has no field {field!r}")


@dataclass(frozen=True)
class Prop:
    """Property metadata attached to a declared attribute."""

    idx: Optional[Any] = None
    comment: str = ""
    default: Any = None


def prop(idx: Optional[Any] = None, comment: str = "", default: Any = None) -> Prop:
    """
    Declare property metadata.

    Args:
        idx: Index target; ``""`` or ``True`` indexes the field alone,
            ``"a,b"`` creates a composite index over the listed properties
        comment: Column comment emitted into the schema DDL
        default: Initial value (zero value of the type when omitted)
    """
    return Prop(idx=idx, comment=comment, default=default)


def _zero_value(annotation: Any) -> Any:
    if isinstance(annotation, str):
        name = annotation.rsplit(".", 1)[-1]
    else:
        name = getattr(annotation, "__name__", "")
    return _ZERO_VALUES.get(name)


def _declared_properties(cls: type) -> Dict[str, Any]:
    """Collect public annotated attributes over the class hierarchy."""
    props: Dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, annotation in inspect.get_annotations(klass).items():
            if name.startswith("_"):
                continue
            if "ClassVar" in str(annotation):
                continue
            props[name] = annotation
    return props


class _Entity:
    """Shared initialisation for tags and edges."""

    def __init__(self, **props: Any):
        declared = _declared_properties(type(self))

        unexpected = set(props) - set(declared)
        if unexpected:
            raise TypeError(
                f"{type(self).__name__} got unexpected properties: {sorted(unexpected)}"
            )

        for name, annotation in declared.items():
            if name in props:
                value = props[name]
            else:
                default = getattr(type(self), name, None)
                if isinstance(default, Prop):
                    value = default.default
                    if value is None:
                        value = _zero_value(annotation)
                elif default is None:
                    value = _zero_value(annotation)
                else:
                    value = default
            setattr(self, name, value)

    def __repr__(self) -> str:
        props = ", ".join(
            f"{name}={getattr(self, name)!r}"
            for name in _declared_properties(type(self))
        )
        return f"{type(self).__name__}({props})"


class Tag(_Entity):
    """Marker base class for vertex entities."""

    def __init__(self, id: int = 0, **props: Any):
        super().__init__(**props)
        self._id = int(id)

    @property
    def id(self) -> int:
        return self._id

    def set_id(self, id: int) -> None:
        self._id = int(id)

    def gen_id(self) -> int:
        """Assign a fresh snowflake identity."""
        self._id = idgen.generate()
        return self._id


class Edge(_Entity):
    """Marker base class for edge entities."""

    def __init__(self, src: int = 0, dst: int = 0, rank: int = 0, **props: Any):
        super().__init__(**props)
        self._src = int(src)
        self._dst = int(dst)
        self._rank = int(rank)

    @property
    def src(self) -> int:
        return self._src

    @property
    def dst(self) -> int:
        return self._dst

    @property
    def rank(self) -> int:
        return self._rank

    def set_endpoints(self, src: int, dst: int, rank: int = 0) -> None:
        self._src = int(src)
        self._dst = int(dst)
        self._rank = int(rank)

    def edge_key(self) -> str:
        """Render ``src->dst`` (with ``@rank`` when non-zero) for nGQL."""
        key = f"{self._src}->{self._dst}"
        if self._rank:
            key += f"@{self._rank}"
        return key


# Literal helpers used by generated code


_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def escape_ngql(text: str, quote_char: str = '"') -> str:
    """Escape backslashes, line breaks, tabs and the quote character."""
    return "".join(
        "\\" + c if c == quote_char else _ESCAPES.get(c, c) for c in text
    )


def quote(value: Any) -> str:
    """Render a string as a double-quoted nGQL literal."""
    return '"' + escape_ngql(str(value)) + '"'


def _ensure_float_form(text: str) -> str:
    if any(c in text for c in ".eE"):
        return text
    return text + ".0"


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{number!r} has no nGQL literal")
    return number


def format_float(value: Any) -> str:
    """Render a double with the shortest round-trip representation."""
    return _ensure_float_form(repr(_finite(value)))


def format_float32(value: Any) -> str:
    """Render a value rounded to float32 with its shortest round-trip form."""
    single = struct.unpack("f", struct.pack("f", _finite(value)))[0]
    for precision in range(1, 10):
        text = f"{single:.{precision}g}"
        if struct.unpack("f", struct.pack("f", float(text)))[0] == single:
            return _ensure_float_form(text)
    return _ensure_float_form(repr(single))


def check_result_set(nql: str, result: Any) -> None:
    """Raise ``QueryError`` unless the result set reports success."""
    if not result.is_succeeded():
        raise QueryError(nql, result.error_code(), result.error_msg())
