"""
Exception hierarchy for the generator.

Every failure that must abort a run derives from ``GeneratorError`` so the
assembler can stop before any output is written.
"""


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


class ExtractionError(GeneratorError):
    """A declaration cannot be turned into a consistent entity model."""

    def __init__(self, message: str, filename: str = "", lineno: int = 0):
        self.filename = filename
        self.lineno = lineno
        location = f"{filename}:{lineno}: " if filename else ""
        super().__init__(f"{location}{message}")


class EmissionError(GeneratorError):
    """A template could not be produced for an entity."""

    pass


class UnsupportedTypeError(EmissionError):
    """A field uses a type with no graph column mapping."""

    def __init__(self, type_name: str, owner: str = ""):
        self.type_name = type_name
        self.owner = owner
        where = f" (field {owner})" if owner else ""
        super().__init__(f"unsupported field type {type_name!r}{where}")


class FormatError(GeneratorError):
    """Generated source failed validation; non-fatal for the run."""

    pass


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass
