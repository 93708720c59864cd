"""
Model extraction from entity declarations.

Declarations are read as syntax only: each module is parsed with ``ast``
and never imported. Top-level classes become ``EntityModel`` values in
file and declaration order.
"""

import ast
import io
import tokenize
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from ...logging_config import get_logger
from .errors import ConfigError, ExtractionError
from .naming import IdentifierPolicy
from .schema import (
    EDGE_ENDPOINT_FIELDS,
    IDENTITY_FIELD,
    EntityKind,
    EntityModel,
    FieldModel,
)

logger = get_logger(__name__)

TAG_MARKER = "Tag"
EDGE_MARKER = "Edge"
PROP_FACTORY = "prop"

GENERATED_BANNER = "Code generated by"

# Attribute names the generated mapper or the runtime bases already use
RESERVED_ATTRIBUTES = frozenset(
    {
        "all_fields",
        "all_fields_with_id",
        "tag_name",
        "edge_name",
        "nql_names",
        "nql_values",
        "nql_bind",
        "nql_name_values",
        "condition_item",
        "create",
        "insert",
        "remove_by_id",
        "bind_record",
        "bind_one",
        "one",
        "list",
        "set_id",
        "gen_id",
        "set_endpoints",
        "edge_key",
    }
)


@dataclass
class SourceFile:
    """A single declaration module."""

    path: Path
    module: str
    text: str


@dataclass
class SourcePackage:
    """The set of modules scanned in one run."""

    directory: Path
    name: str
    files: List[SourceFile] = field(default_factory=list)
    is_package: bool = False


def _is_test_module(path: Path) -> bool:
    return path.name.startswith("test_") or path.stem.endswith("_test")


def _is_generated(text: str) -> bool:
    first_line = text.lstrip().split("\n", 1)[0]
    return first_line.startswith("#") and GENERATED_BANNER in first_line


def load_package(paths: Sequence[Union[str, Path]]) -> SourcePackage:
    """
    Resolve a directory or a list of files from one directory.

    Args:
        paths: One directory, or any number of ``.py`` files

    Returns:
        SourcePackage with readable, non-generated declaration modules

    Raises:
        ConfigError: If paths are missing, unreadable or span directories
    """
    if not paths:
        paths = ["."]

    candidates = [Path(p) for p in paths]
    for candidate in candidates:
        if not candidate.exists():
            raise ConfigError(f"Path not found: {candidate}")

    if len(candidates) == 1 and candidates[0].is_dir():
        directory = candidates[0]
        files = sorted(directory.glob("*.py"))
        explicit = False
    else:
        for candidate in candidates:
            if candidate.is_dir():
                raise ConfigError(
                    f"Expected a single directory or a list of files, got directory {candidate}"
                )
            if candidate.suffix != ".py":
                raise ConfigError(f"Not a Python source file: {candidate}")
        parents = {c.resolve().parent for c in candidates}
        if len(parents) != 1:
            raise ConfigError("All files must be in a single directory")
        directory = candidates[0].parent
        files = candidates
        explicit = True

    package = SourcePackage(
        directory=directory,
        name=directory.resolve().name,
        is_package=(directory / "__init__.py").exists(),
    )

    for path in files:
        if not explicit and (path.name == "__init__.py" or _is_test_module(path)):
            logger.debug("Skipping %s", path)
            continue

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Error reading file {path}: {e}") from e

        if _is_generated(text):
            logger.debug("Skipping generated file %s", path)
            continue

        package.files.append(SourceFile(path=path, module=path.stem, text=text))

    logger.debug("Loaded %d source file(s) from %s", len(package.files), directory)
    return package


def _dotted_tail(node: ast.expr) -> Optional[str]:
    """Last component of a bare or dotted name; None for anything else."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _annotation_name(annotation: ast.expr) -> Optional[str]:
    """Directly nameable type of an annotation, if it has one."""
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        # Quoted annotation; parse the inner expression
        try:
            inner = ast.parse(annotation.value, mode="eval").body
        except SyntaxError:
            return None
        return _annotation_name(inner)
    return _dotted_tail(annotation)


def _line_comments(source: str) -> Dict[int, str]:
    """Map line numbers to the text of the comment on that line."""
    comments = {}
    for token in tokenize.generate_tokens(io.StringIO(source).readline):
        if token.type == tokenize.COMMENT:
            comments[token.start[0]] = token.string.lstrip("#").strip()
    return comments


class ModelExtractor:
    """Turns declaration modules into entity models."""

    def __init__(
        self,
        policy: Optional[IdentifierPolicy] = None,
        type_names: Optional[Iterable[str]] = None,
    ):
        """
        Initialize extractor.

        Args:
            policy: Identifier policy deriving external names
            type_names: Allow-list of declared class names; None means all
        """
        self.policy = policy or IdentifierPolicy()
        self.type_names: Optional[Set[str]] = set(type_names) if type_names else None
        self._remaining: Optional[Set[str]] = None

    def _allowed(self, name: str) -> bool:
        return self.type_names is None or name in self.type_names

    def _done(self) -> bool:
        return self._remaining is not None and not self._remaining

    def extract(self, package: SourcePackage) -> List[EntityModel]:
        """
        Extract every selected entity of a package.

        Returns:
            Entity models in file and declaration order

        Raises:
            ExtractionError: On ambiguous, colliding or malformed declarations
        """
        self._remaining = set(self.type_names) if self.type_names is not None else None
        entities: List[EntityModel] = []

        for source in package.files:
            if self._done():
                break
            entities.extend(self._extract_module(source.text, source.module, str(source.path)))

        if self._remaining:
            logger.warning(
                "Requested type(s) not found: %s", ", ".join(sorted(self._remaining))
            )

        self.validate(entities)
        return entities

    def extract_source(
        self, source: str, module: str, filename: str = "<string>"
    ) -> List[EntityModel]:
        """Extract entities from a single module's source text."""
        self._remaining = set(self.type_names) if self.type_names is not None else None
        entities = self._extract_module(source, module, filename)
        self.validate(entities)
        return entities

    def _extract_module(self, source: str, module: str, filename: str) -> List[EntityModel]:
        try:
            tree = ast.parse(source, filename=filename)
        except SyntaxError as e:
            raise ExtractionError(f"invalid syntax: {e.msg}", filename, e.lineno or 0) from e

        comments = _line_comments(source)
        entities = []

        for node in tree.body:
            if not isinstance(node, ast.ClassDef):
                continue
            if not self._allowed(node.name):
                logger.debug("Skipping class %s (not requested)", node.name)
                continue

            entity = self._extract_class(node, module, filename, comments)
            entities.append(entity)
            logger.debug(
                "Extracted %s %s with %d field(s)",
                entity.kind.value,
                entity.declared_name,
                len(entity.fields),
            )

            if self._remaining is not None:
                self._remaining.discard(node.name)
                if not self._remaining:
                    break

        return entities

    def _extract_class(
        self,
        node: ast.ClassDef,
        module: str,
        filename: str,
        comments: Dict[int, str],
    ) -> EntityModel:
        markers: List[str] = []
        for base in node.bases:
            name = _dotted_tail(base)
            if name in (TAG_MARKER, EDGE_MARKER):
                markers.append(name)

        fields: List[FieldModel] = []
        for stmt in node.body:
            if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
                continue

            type_name = _annotation_name(stmt.annotation)
            if type_name in (TAG_MARKER, EDGE_MARKER):
                markers.append(type_name)
                continue

            name = stmt.target.id
            if name.startswith("_"):
                continue
            if type_name is None or type_name == "ClassVar":
                logger.debug(
                    "Skipping %s.%s: annotation is not a plain type name", node.name, name
                )
                continue

            fields.append(self._extract_field(stmt, name, type_name, filename, comments))

        kinds = set(markers)
        if len(kinds) > 1:
            raise ExtractionError(
                f"class {node.name} is marked as both {TAG_MARKER} and {EDGE_MARKER}",
                filename,
                node.lineno,
            )

        if TAG_MARKER in kinds:
            kind = EntityKind.VERTEX
        elif EDGE_MARKER in kinds:
            kind = EntityKind.EDGE
        else:
            kind = EntityKind.PLAIN

        return EntityModel(
            declared_name=node.name,
            external_name=self.policy.external_name(node.name),
            kind=kind,
            module=module,
            fields=tuple(fields),
            description=ast.get_docstring(node),
            filename=filename,
            lineno=node.lineno,
        )

    def _extract_field(
        self,
        stmt: ast.AnnAssign,
        name: str,
        type_name: str,
        filename: str,
        comments: Dict[int, str],
    ) -> FieldModel:
        indexed, index_target, comment = self._parse_prop(stmt.value, filename)

        if comment is None:
            comment = comments.get(stmt.end_lineno or stmt.lineno, "")

        return FieldModel(
            declared_name=name,
            external_name=self.policy.external_name(name),
            type_name=type_name,
            comment=comment,
            indexed=indexed,
            index_target=index_target,
            lineno=stmt.lineno,
        )

    def _parse_prop(
        self, value: Optional[ast.expr], filename: str
    ) -> Tuple[bool, str, Optional[str]]:
        """Read ``prop(idx=..., comment=...)`` metadata from a default value."""
        if not isinstance(value, ast.Call) or _dotted_tail(value.func) != PROP_FACTORY:
            return False, "", None

        arguments: Dict[str, ast.expr] = {}
        if value.args:
            arguments["idx"] = value.args[0]
        for keyword in value.keywords:
            if keyword.arg is not None:
                arguments[keyword.arg] = keyword.value

        indexed, index_target, comment = False, "", None

        if "idx" in arguments:
            idx = arguments["idx"]
            if not isinstance(idx, ast.Constant):
                raise ExtractionError("idx must be a literal", filename, idx.lineno)
            if idx.value is True:
                indexed = True
            elif isinstance(idx.value, str):
                indexed, index_target = True, idx.value.strip()
            elif idx.value not in (None, False):
                raise ExtractionError(
                    f"idx must be a string or boolean, got {idx.value!r}", filename, idx.lineno
                )

        if "comment" in arguments:
            node = arguments["comment"]
            if not isinstance(node, ast.Constant) or not isinstance(node.value, str):
                raise ExtractionError("comment must be a string literal", filename, node.lineno)
            comment = node.value

        return indexed, index_target, comment

    def validate(self, entities: List[EntityModel]):
        """
        Check model-wide invariants.

        Raises:
            ExtractionError: On the first violated invariant
        """
        seen: Dict[str, EntityModel] = {}
        labels: Dict[Tuple[EntityKind, str], EntityModel] = {}

        for entity in entities:
            if not entity.is_graph_entity:
                continue

            previous = seen.get(entity.declared_name)
            if previous is not None:
                raise ExtractionError(
                    f"class {entity.declared_name} is declared twice "
                    f"(first in {previous.filename}:{previous.lineno})",
                    entity.filename,
                    entity.lineno,
                )
            seen[entity.declared_name] = entity

            if not entity.external_name:
                raise ExtractionError(
                    f"class {entity.declared_name} has an empty external name",
                    entity.filename,
                    entity.lineno,
                )

            key = (entity.kind, entity.external_name)
            previous = labels.get(key)
            if previous is not None:
                raise ExtractionError(
                    f"{entity.kind.value} {entity.declared_name} and "
                    f"{previous.declared_name} share the name {entity.external_name!r}",
                    entity.filename,
                    entity.lineno,
                )
            labels[key] = entity

            self._validate_fields(entity)

    def _validate_fields(self, entity: EntityModel):
        reserved = {IDENTITY_FIELD}
        if entity.is_edge:
            reserved.update(EDGE_ENDPOINT_FIELDS)

        names: Dict[str, FieldModel] = {}
        for f in entity.fields:
            if f.external_name in reserved or f.declared_name in reserved:
                raise ExtractionError(
                    f"{entity.declared_name}.{f.declared_name} uses a reserved identity name",
                    entity.filename,
                    f.lineno,
                )
            if f.declared_name in RESERVED_ATTRIBUTES:
                raise ExtractionError(
                    f"{entity.declared_name}.{f.declared_name} shadows a generated method",
                    entity.filename,
                    f.lineno,
                )
            if not f.external_name:
                raise ExtractionError(
                    f"{entity.declared_name}.{f.declared_name} has an empty external name",
                    entity.filename,
                    f.lineno,
                )
            previous = names.get(f.external_name)
            if previous is not None:
                raise ExtractionError(
                    f"{entity.declared_name}.{f.declared_name} and "
                    f"{entity.declared_name}.{previous.declared_name} share the name "
                    f"{f.external_name!r}",
                    entity.filename,
                    f.lineno,
                )
            names[f.external_name] = f


def extract_entities(
    paths: Sequence[Union[str, Path]],
    trim_prefix: str = "",
    type_names: Optional[Iterable[str]] = None,
) -> Tuple[SourcePackage, List[EntityModel]]:
    """Load a package and extract its entity models."""
    package = load_package(paths)
    extractor = ModelExtractor(IdentifierPolicy(trim_prefix), type_names)
    return package, extractor.extract(package)
