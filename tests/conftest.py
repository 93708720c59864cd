"""
Shared pytest fixtures for ngorm tests.

Generated mapper modules run against in-memory sessions and result sets
shaped like the nebula3-python client.
"""

import importlib
import itertools
import textwrap

import pytest

from ngorm.codegen import generate_from_paths
from ngorm.codegen.core.config import load_config
from ngorm.codegen.core.generator import default_output_path, write_output


# =============================================================================
# Fake database client
# =============================================================================


class FakeValue:
    """Value wrapper with the accessors generated code uses."""

    def __init__(self, value):
        self._value = value

    def as_string(self):
        if not isinstance(self._value, str):
            raise TypeError(f"not a string: {self._value!r}")
        return self._value

    def as_int(self):
        if not isinstance(self._value, int):
            raise TypeError(f"not an int: {self._value!r}")
        return self._value

    def as_double(self):
        if not isinstance(self._value, float):
            raise TypeError(f"not a double: {self._value!r}")
        return self._value


class FakeRecord:
    """One result row keyed by column alias."""

    def __init__(self, values):
        self._values = dict(values)

    def get_value_by_key(self, key):
        return FakeValue(self._values[key])


class FakeResultSet:
    """Result set holding rows as dicts of column alias to value."""

    def __init__(self, rows=None, error_code=0, error_msg=""):
        self._rows = list(rows or [])
        self._error_code = error_code
        self._error_msg = error_msg

    def is_succeeded(self):
        return self._error_code == 0

    def error_code(self):
        return self._error_code

    def error_msg(self):
        return self._error_msg

    def row_size(self):
        return len(self._rows)

    def __iter__(self):
        return iter([FakeRecord(row) for row in self._rows])


class FakeSession:
    """Records executed statements and replays queued results."""

    def __init__(self, *results):
        self.statements = []
        self._results = list(results)

    def execute(self, nql):
        self.statements.append(nql)
        if self._results:
            return self._results.pop(0)
        return FakeResultSet()


# =============================================================================
# Sample declarations
# =============================================================================


SOCIAL_MODELS = '''
from ngorm.base import Edge, Tag, float64, int32, prop, string


class Person(Tag):
    """A person in the social graph."""

    name: string
    age: int32 = prop(idx=True)


class Follow(Edge):
    degree: float64


class Address:
    street: string
'''


@pytest.fixture
def social_source():
    """Declarations with one vertex, one edge and one plain class."""
    return SOCIAL_MODELS


@pytest.fixture
def session_factory():
    """Build a fake session replaying the given result sets."""
    return FakeSession


@pytest.fixture
def result_set():
    """Build a fake result set."""
    return FakeResultSet


_package_counter = itertools.count()


@pytest.fixture
def model_package(tmp_path):
    """
    Write declaration modules into a fresh package directory.

    Returns a function taking ``{module_name: source}`` and returning the
    package directory.
    """

    def _write(modules, package=True):
        name = f"graphpkg_{next(_package_counter)}"
        directory = tmp_path / name
        directory.mkdir()
        if package:
            (directory / "__init__.py").write_text("", encoding="utf-8")
        for module, source in modules.items():
            (directory / f"{module}.py").write_text(textwrap.dedent(source), encoding="utf-8")
        return directory

    return _write


@pytest.fixture
def generated_module(model_package, monkeypatch):
    """
    Generate mappers for declarations and import the generated module.

    Returns a function taking ``{module_name: source}`` plus generator
    options and returning the imported generated module.
    """

    def _generate(modules, **options):
        directory = model_package(modules)
        config = load_config(custom_config=options or None)
        package, result = generate_from_paths([directory], config)
        assert result.success, result.error_message
        write_output(result, default_output_path(package, config))

        monkeypatch.syspath_prepend(str(directory.parent))
        return importlib.import_module(f"{directory.name}.ngorm_generate")

    return _generate
