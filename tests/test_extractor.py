"""Tests for declaration scanning and model validation."""

import logging
import textwrap

import pytest

from ngorm.codegen.core.errors import ConfigError, ExtractionError
from ngorm.codegen.core.extractor import ModelExtractor, load_package
from ngorm.codegen.core.naming import IdentifierPolicy
from ngorm.codegen.core.schema import EntityKind


def extract(source, **kwargs):
    return ModelExtractor(**kwargs).extract_source(textwrap.dedent(source), "models", "models.py")


class TestClassification:
    """Tests for vertex/edge/plain classification."""

    def test_kinds(self, social_source):
        """Should classify by marker base class."""
        entities = extract(social_source)
        assert [(e.declared_name, e.kind) for e in entities] == [
            ("Person", EntityKind.VERTEX),
            ("Follow", EntityKind.EDGE),
            ("Address", EntityKind.PLAIN),
        ]

    def test_dotted_marker(self):
        """Should accept markers referenced through a module."""
        entities = extract(
            """
            from ngorm import base


            class City(base.Tag):
                name: base.string
            """
        )
        assert entities[0].is_vertex
        assert entities[0].fields[0].type_name == "string"

    def test_marker_annotation(self):
        """A field annotated with a marker classifies the class."""
        entities = extract(
            """
            class City:
                tag: Tag
                name: string
            """
        )
        assert entities[0].is_vertex
        assert entities[0].field_names == ["name"]

    def test_both_markers_rejected(self):
        """A class cannot be both a vertex and an edge."""
        with pytest.raises(ExtractionError, match="both Tag and Edge"):
            extract(
                """
                class Odd(Tag, Edge):
                    pass
                """
            )

    def test_docstring_description(self, social_source):
        """Should keep the class docstring."""
        person = extract(social_source)[0]
        assert person.description == "A person in the social graph."


class TestFields:
    """Tests for field extraction."""

    def test_external_names_and_order(self):
        """Should lower-case names and keep declaration order."""
        entity = extract(
            """
            class User(Tag):
                NickName: string
                Age: int32
            """
        )[0]
        assert entity.external_name == "user"
        assert [(f.declared_name, f.external_name) for f in entity.fields] == [
            ("NickName", "nickname"),
            ("Age", "age"),
        ]

    def test_skips_private_and_classvar(self):
        """Private attributes and class variables are not properties."""
        entity = extract(
            """
            class User(Tag):
                _cache: string
                kind: ClassVar[str] = "user"
                total: ClassVar
                name: string
                helper = 3
            """
        )[0]
        assert entity.field_names == ["name"]

    def test_quoted_annotation(self):
        """Should resolve string annotations."""
        entity = extract(
            """
            class User(Tag):
                name: "string"
            """
        )[0]
        assert entity.fields[0].type_name == "string"

    def test_prop_metadata(self):
        """Should read index and comment from prop()."""
        entity = extract(
            """
            class City(Tag):
                name: string = prop("name,country", comment="official name")
                code: string = prop(idx=True)
                country: string = prop(idx=False)
            """
        )[0]
        name, code, country = entity.fields
        assert (name.indexed, name.index_columns, name.comment) == (
            True,
            "name,country",
            "official name",
        )
        assert (code.indexed, code.index_columns) == (True, "code")
        assert country.indexed is False
        assert [f.external_name for f in entity.indexed_fields] == ["name", "code"]

    def test_empty_index_target(self):
        """An empty idx string indexes the field alone."""
        field = extract(
            """
            class City(Tag):
                name: string = prop(idx="")
            """
        )[0].fields[0]
        assert field.indexed
        assert field.index_columns == "name"

    def test_trailing_comment(self):
        """Should use the trailing comment when prop() gives none."""
        entity = extract(
            """
            class City(Tag):
                name: string  # display name
                code: string = prop(comment="explicit")  # ignored
            """
        )[0]
        assert [f.comment for f in entity.fields] == ["display name", "explicit"]

    def test_non_literal_idx(self):
        """idx must be a literal."""
        with pytest.raises(ExtractionError, match="idx must be a literal"):
            extract(
                """
                class City(Tag):
                    name: string = prop(idx=INDEX)
                """
            )

    def test_non_string_comment(self):
        """comment must be a string literal."""
        with pytest.raises(ExtractionError, match="comment must be a string literal"):
            extract(
                """
                class City(Tag):
                    name: string = prop(comment=3)
                """
            )


class TestValidation:
    """Tests for model-wide invariants."""

    def test_reserved_vertex_id(self):
        """Vertices cannot declare id."""
        with pytest.raises(ExtractionError, match="reserved identity name"):
            extract(
                """
                class User(Tag):
                    id: int64
                """
            )

    @pytest.mark.parametrize("name", ["src", "dst", "rank", "ID"])
    def test_reserved_edge_names(self, name):
        """Edges cannot declare id or endpoint properties."""
        with pytest.raises(ExtractionError, match="reserved identity name"):
            extract(f"class Knows(Edge):\n    {name}: int64\n")

    def test_vertex_may_use_endpoint_names(self):
        """src is an ordinary property name on vertices."""
        assert extract("class Page(Tag):\n    src: string\n")[0].field_names == ["src"]

    def test_shadowing_generated_method(self):
        """Properties cannot shadow generated methods."""
        with pytest.raises(ExtractionError, match="shadows a generated method"):
            extract("class Page(Tag):\n    insert: string\n")

    def test_label_collision(self):
        """Two vertices folding to the same label are rejected."""
        with pytest.raises(ExtractionError, match="share the name 'user'"):
            extract("class User(Tag):\n    pass\n\nclass USER(Tag):\n    pass\n")

    def test_vertex_and_edge_may_share_label(self):
        """Tags and edges live in separate namespaces."""
        entities = extract("class Like(Tag):\n    pass\n\nclass LIKE(Edge):\n    pass\n")
        assert [e.external_name for e in entities] == ["like", "like"]

    def test_field_collision(self):
        """Two fields folding to the same property are rejected."""
        with pytest.raises(ExtractionError, match="share the name 'name'"):
            extract("class User(Tag):\n    Name: string\n    name: string\n")

    def test_plain_classes_not_validated(self):
        """Plain classes may use any attribute names."""
        entities = extract("class Row:\n    id: int\n    insert: str\n")
        assert entities[0].kind is EntityKind.PLAIN

    def test_empty_external_name(self):
        """A name equal to the trim prefix leaves nothing."""
        with pytest.raises(ExtractionError, match="empty external name"):
            extract("class Graph(Tag):\n    pass\n", policy=IdentifierPolicy("Graph"))

    def test_syntax_error_has_location(self):
        """Syntax errors name the file and line."""
        with pytest.raises(ExtractionError) as exc_info:
            extract("class Broken(Tag)\n    pass\n")
        assert str(exc_info.value).startswith("models.py:1:")
        assert exc_info.value.lineno == 1


class TestTypeFilter:
    """Tests for the class allow-list."""

    def test_selects_named_classes(self, social_source):
        """Only requested classes are extracted."""
        entities = extract(social_source, type_names=["Follow"])
        assert [e.declared_name for e in entities] == ["Follow"]

    def test_missing_names_warn(self, model_package, social_source, caplog):
        """Requested classes that were never found are reported."""
        package = load_package([model_package({"models": social_source})])
        with caplog.at_level(logging.WARNING):
            entities = ModelExtractor(type_names=["Person", "Ghost"]).extract(package)
        assert [e.declared_name for e in entities] == ["Person"]
        assert "Ghost" in caplog.text


class TestLoadPackage:
    """Tests for resolving declaration sources."""

    def test_directory(self, model_package, social_source):
        """Should load modules in name order, skipping support files."""
        directory = model_package(
            {
                "b_models": social_source,
                "a_models": "X = 1\n",
                "test_models": "Y = 2\n",
                "models_test": "Z = 3\n",
                "ngorm_generate": '# Code generated by "ngormgen"; DO NOT EDIT.\n',
            }
        )
        package = load_package([directory])
        assert [f.module for f in package.files] == ["a_models", "b_models"]
        assert package.is_package
        assert package.name == directory.name

    def test_file_list(self, model_package, social_source):
        """Should accept explicit files from one directory."""
        directory = model_package({"models": social_source, "other": "X = 1\n"})
        package = load_package([directory / "models.py"])
        assert [f.module for f in package.files] == ["models"]
        assert package.directory == directory

    def test_files_from_two_directories(self, model_package, social_source):
        """Files must share a directory."""
        first = model_package({"models": social_source})
        second = model_package({"models": social_source})
        with pytest.raises(ConfigError, match="single directory"):
            load_package([first / "models.py", second / "models.py"])

    def test_missing_path(self, tmp_path):
        """Missing paths are configuration errors."""
        with pytest.raises(ConfigError, match="Path not found"):
            load_package([tmp_path / "missing"])

    def test_non_python_file(self, tmp_path):
        """Only .py files are accepted."""
        path = tmp_path / "models.txt"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="Not a Python source file"):
            load_package([path])
