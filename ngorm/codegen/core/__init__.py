"""
Core code generation components.

Provides the entity model, extraction, configuration and template
utilities the Nebula generator builds on.
"""

from .builder import SourceBuilder
from .config import ConfigManager, GeneratorConfig, load_config
from .errors import (
    ConfigError,
    EmissionError,
    ExtractionError,
    FormatError,
    GeneratorError,
    UnsupportedTypeError,
)
from .extractor import ModelExtractor, SourcePackage, extract_entities, load_package
from .formatting import format_source
from .generator import CodeGenerator, GenerationResult, generate_code, write_output
from .naming import IdentifierPolicy
from .schema import EntityKind, EntityModel, FieldModel
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "CodeGenerator",
    "GenerationResult",
    "generate_code",
    "write_output",
    "SourceBuilder",
    "format_source",
    # Errors
    "GeneratorError",
    "ExtractionError",
    "EmissionError",
    "UnsupportedTypeError",
    "FormatError",
    "ConfigError",
    # Entity model and extraction
    "EntityKind",
    "EntityModel",
    "FieldModel",
    "ModelExtractor",
    "SourcePackage",
    "extract_entities",
    "load_package",
    "IdentifierPolicy",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "load_config",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
