"""
Nebula mapper generator implementation.

Generates one Python module of mapper subclasses, one per Tag or Edge
entity, whose methods build and run nGQL statements.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...base import escape_ngql
from ..core.builder import SourceBuilder
from ..core.config import GeneratorConfig
from ..core.errors import EmissionError
from ..core.extractor import SourcePackage
from ..core.generator import CodeGenerator
from ..core.schema import EntityModel, graph_entities
from .types import ID_TYPE, RANK_TYPE, RUNTIME_ALIAS, TypeCodec

# Method templates per entity kind, in emission order
COMMON_HEAD = [
    "all_fields.py.j2",
    "all_fields_with_id.py.j2",
    "label.py.j2",
    "nql_names.py.j2",
    "nql_values.py.j2",
    "nql_bind.py.j2",
    "nql_name_values.py.j2",
    "condition_item.py.j2",
    "create.py.j2",
]
COMMON_TAIL = [
    "bind_record.py.j2",
    "bind_one.py.j2",
    "one.py.j2",
    "list.py.j2",
]
VERTEX_OPERATIONS = COMMON_HEAD + ["insert_tag.py.j2", "remove_tag.py.j2"] + COMMON_TAIL
EDGE_OPERATIONS = COMMON_HEAD + ["insert_edge.py.j2", "remove_edge.py.j2"] + COMMON_TAIL

REQUIRED_TEMPLATES = sorted(
    set(VERTEX_OPERATIONS + EDGE_OPERATIONS)
    | {"preamble.py.j2", "entity_class.py.j2", "list_type.py.j2", "create_all.py.j2"}
)


def _ngql_string(text: str) -> str:
    """Single-quoted nGQL string literal."""
    return "'" + escape_ngql(text, "'") + "'"


def _value_key(column: str) -> str:
    return f"record.get_value_by_key({json.dumps(column)})"


def _module_alias(module: str) -> str:
    """Private name a declaration module is imported under."""
    return f"_{module}"


class NebulaGenerator(CodeGenerator):
    """Code generator for Nebula graph mappers."""

    def __init__(self, config: Optional[GeneratorConfig] = None, invocation: str = "ngormgen"):
        """
        Initialize the generator.

        Args:
            config: Generator configuration
            invocation: Command line recorded in the generated banner
        """
        super().__init__(config)
        self.invocation = " ".join(invocation.split())
        self.codec = TypeCodec()

    def get_template_directory(self) -> Optional[Path]:
        """Return the Nebula templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    @property
    def target_name(self) -> str:
        return "nebula"

    def generate(self, entities: List[EntityModel], package: SourcePackage) -> str:
        """Generate the complete mapper module using templates."""
        emitted = graph_entities(entities)
        self._check_generated_names(emitted)

        builder = SourceBuilder()
        builder.write(self.render_template("preamble.py.j2", self._preamble_context(emitted, package)))

        for entity in emitted:
            self.generate_single_entity(entity, builder)

        builder.fragment(
            self.render_template(
                "create_all.py.j2",
                {"entities": [self._class_context(e) for e in emitted]},
            ),
            blank_lines=2,
        )
        return builder.finish()

    def generate_single_entity(self, entity: EntityModel, builder: SourceBuilder):
        """Append the mapper class and its list type for one entity."""
        if not entity.is_graph_entity:
            return

        context = self._entity_context(entity)
        builder.fragment(self.render_template("entity_class.py.j2", context), blank_lines=2)

        operations = VERTEX_OPERATIONS if entity.is_vertex else EDGE_OPERATIONS
        for template_name in operations:
            builder.fragment(self.render_template(template_name, context))

        builder.fragment(self.render_template("list_type.py.j2", context), blank_lines=2)

    def _check_generated_names(self, entities: List[EntityModel]):
        """Generated list classes and module-level names must not shadow a mapper."""
        declared = {e.declared_name for e in entities}
        module_names = {_module_alias(e.module): e.module for e in entities}
        module_names[RUNTIME_ALIAS] = "ngorm.base"
        module_names["create"] = "the aggregate create function"
        for entity in entities:
            owner = module_names.get(entity.declared_name)
            if owner is not None:
                raise EmissionError(
                    f"{entity.declared_name}: class name collides with the generated "
                    f"name for {owner}"
                )
            list_name = f"{entity.declared_name}List"
            if list_name in declared:
                raise EmissionError(
                    f"{entity.declared_name}: generated class {list_name} "
                    f"collides with the entity of the same name"
                )

    def _preamble_context(
        self, entities: List[EntityModel], package: SourcePackage
    ) -> Dict[str, Any]:
        modules = []
        for entity in entities:
            if entity.module not in modules:
                modules.append(entity.module)

        if package.is_package:
            imports = [f"from . import {m} as {_module_alias(m)}" for m in modules]
        else:
            imports = [f"import {m} as {_module_alias(m)}" for m in modules]

        package_name = self.config.package_name or package.name
        return {
            "invocation": self.invocation,
            "package_name": "".join(c for c in package_name if c not in "\"\\"),
            "runtime_alias": RUNTIME_ALIAS,
            "imports": imports,
        }

    def _class_context(self, entity: EntityModel) -> Dict[str, Any]:
        label_kind = "tag" if entity.is_vertex else "edge"
        doc = None
        if self.config.add_comments:
            doc = f"Mapper for the {entity.external_name} {label_kind}."
        return {
            "class_name": entity.declared_name,
            "base": f"{_module_alias(entity.module)}.{entity.declared_name}",
            "label": entity.external_name,
            "label_method": f"{label_kind}_name",
            "list_name": f"{entity.declared_name}List",
            "doc": doc,
        }

    def _entity_context(self, entity: EntityModel) -> Dict[str, Any]:
        """Build the template context shared by every method of one mapper."""
        label = entity.external_name
        alias = "v" if entity.is_vertex else "e"

        fields = []
        for f in entity.fields:
            nebula_type = self.codec.for_field(f, entity.declared_name)
            column = f"{label}_{f.external_name}"
            if entity.is_vertex:
                reference = f"{alias}.{label}.{f.external_name}"
                bind_suffix = f".{label}.{f.external_name} AS {column}"
            else:
                reference = f"{alias}.{f.external_name}"
                bind_suffix = f".{f.external_name} AS {column}"
            fields.append(
                {
                    "name": f.external_name,
                    "attr": f.declared_name,
                    "column": column,
                    "ddl": nebula_type.ddl,
                    "comment": f.comment,
                    "literal": nebula_type.literal(f"self.{f.declared_name}"),
                    "deserialize": nebula_type.deserialize(_value_key(column)),
                    "condition": f"{reference}==",
                    "reference": reference,
                    "bind_suffix": bind_suffix,
                }
            )

        context = {
            "entity": self._class_context(entity),
            "fields": fields,
            "ddl": self._ddl_statement(entity, fields),
            "indexes": self._index_statements(entity),
            "unknown_field": (
                f"raise {RUNTIME_ALIAS}.UnknownFieldError({json.dumps(entity.declared_name)}, f)"
            ),
        }

        if entity.is_vertex:
            context.update(self._vertex_identity(label, alias, fields))
        else:
            context.update(self._edge_identity(label, alias, fields))
        return context

    def _vertex_identity(self, label: str, alias: str, fields: List[Dict[str, Any]]):
        id_type = self.codec.resolve(ID_TYPE.value)
        id_column = f"{label}_id"
        projection = [f"id({alias}) AS {id_column}"]
        projection += [f"{f['reference']} AS {f['column']}" for f in fields]
        return {
            "match": f"MATCH ({alias}:{label})",
            "projection": " RETURN " + ", ".join(projection),
            "identity_bind": [{"prefix": "id(", "suffix": f") AS {id_column}"}],
            "identity_condition": (
                json.dumps(f"id({alias})==") + " + " + id_type.literal("self.id")
            ),
            "identity_setter": f"self.set_id({id_type.deserialize(_value_key(id_column))})",
        }

    def _edge_identity(self, label: str, alias: str, fields: List[Dict[str, Any]]):
        endpoint_types = {
            "src": self.codec.resolve(ID_TYPE.value),
            "dst": self.codec.resolve(ID_TYPE.value),
            "rank": self.codec.resolve(RANK_TYPE.value),
        }

        projection = [f"{name}({alias}) AS {label}_{name}" for name in endpoint_types]
        projection += [f"{f['reference']} AS {f['column']}" for f in fields]

        conditions = []
        for position, (name, nebula_type) in enumerate(endpoint_types.items()):
            prefix = f"{name}({alias})==" if position == 0 else f" AND {name}({alias})=="
            conditions.append(json.dumps(prefix) + " + " + nebula_type.literal(f"self.{name}"))

        readers = [
            nebula_type.deserialize(_value_key(f"{label}_{name}"))
            for name, nebula_type in endpoint_types.items()
        ]

        return {
            "match": f"MATCH ()-[{alias}:{label}]->()",
            "projection": " RETURN " + ", ".join(projection),
            "identity_bind": [
                {"prefix": f"{name}(", "suffix": f") AS {label}_{name}"}
                for name in endpoint_types
            ],
            "identity_condition": " + ".join(conditions),
            "identity_setter": f"self.set_endpoints({', '.join(readers)})",
        }

    def _ddl_statement(self, entity: EntityModel, fields: List[Dict[str, Any]]) -> str:
        keyword = "TAG" if entity.is_vertex else "EDGE"
        columns = ", ".join(
            f"{f['name']} {f['ddl']} COMMENT {_ngql_string(f['comment'])}" for f in fields
        )
        statement = f"CREATE {keyword} IF NOT EXISTS {entity.external_name}({columns})"
        if self.config.line_comment and entity.description:
            summary = entity.description.strip().split("\n", 1)[0].strip()
            statement += f" COMMENT = {_ngql_string(summary)}"
        return statement + ";"

    def _index_statements(self, entity: EntityModel) -> List[str]:
        if not entity.is_vertex:
            return []
        return [
            f"CREATE TAG INDEX IF NOT EXISTS idx_{f.external_name} "
            f"ON {entity.external_name}({f.index_columns})"
            for f in entity.indexed_fields
        ]

    def validate_entities(self, entities: List[EntityModel]) -> List[str]:
        """Validate entities for Nebula-specific issues."""
        warnings = super().validate_entities(entities)

        missing = [name for name in REQUIRED_TEMPLATES if not self.template_exists(name)]
        if missing:
            warnings.append(f"Missing templates: {', '.join(missing)}")

        seen = {}
        for entity in graph_entities(entities):
            if entity.is_edge:
                for f in entity.indexed_fields:
                    warnings.append(
                        f"{entity.declared_name}.{f.declared_name}: edge properties "
                        f"are not indexed, idx is ignored"
                    )
                continue
            for f in entity.indexed_fields:
                index_name = f"idx_{f.external_name}"
                if index_name in seen:
                    warnings.append(
                        f"Index {index_name} is declared on both {seen[index_name]} "
                        f"and {entity.declared_name}"
                    )
                else:
                    seen[index_name] = entity.declared_name

        return warnings


def create_nebula_generator(
    config: Optional[GeneratorConfig] = None, invocation: str = "ngormgen"
) -> NebulaGenerator:
    """Create a Nebula generator."""
    return NebulaGenerator(config, invocation)
