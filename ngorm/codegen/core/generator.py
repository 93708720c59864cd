"""
Base generator interface and output assembly.

Defines the contract generators implement and the all-or-nothing flow
that turns entity models into one formatted source file.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...logging_config import get_logger
from .builder import SourceBuilder
from .config import DEFAULT_OUTPUT_NAME, GeneratorConfig
from .errors import FormatError
from .extractor import SourcePackage
from .formatting import format_source
from .schema import EntityModel, graph_entities, summarize
from .templates import TemplateEngine, create_template_engine

logger = get_logger(__name__)


class CodeGenerator(ABC):
    """Abstract base class for mapper generators."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize generator with optional configuration."""
        self.config = config or GeneratorConfig()
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        self._template_engine = create_template_engine(self.get_template_directory())

    @property
    @abstractmethod
    def target_name(self) -> str:
        """Return the name of the target query dialect."""
        pass

    @property
    def file_extension(self) -> str:
        """Return the file extension for generated files."""
        return ".py"

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Return None to use in-memory templates only.
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def generate(self, entities: List[EntityModel], package: SourcePackage) -> str:
        """
        Generate the mapper module for all entities.

        Args:
            entities: Entity models in declaration order
            package: Package the entities were extracted from

        Returns:
            Generated code as a string
        """
        pass

    @abstractmethod
    def generate_single_entity(self, entity: EntityModel, builder: SourceBuilder):
        """
        Append the mapper for one vertex or edge entity to ``builder``.
        """
        pass

    def validate_entities(self, entities: List[EntityModel]) -> List[str]:
        """
        Validate entities for non-fatal issues.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        emitted = graph_entities(entities)
        if not emitted:
            warnings.append("No Tag or Edge entities found; only the preamble is generated")

        for entity in emitted:
            if not entity.fields:
                warnings.append(
                    f"{entity.kind.value.title()} {entity.declared_name} has no properties"
                )

        return warnings

    def format_code(self, code: str) -> str:
        """Validate and format generated code."""
        return format_source(code)

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a template with context."""
        return self.template_engine.render_template(template_name, context)

    def template_exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        return self.template_engine.template_exists(template_name)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self, code: str, warnings: List[str] = None, metadata: Dict[str, Any] = None
    ):
        """
        Initialize generation result.

        Args:
            code: Generated code
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message = None
        self.exception = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(code="")
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def generate_code(
    generator: CodeGenerator, entities: List[EntityModel], package: SourcePackage
) -> GenerationResult:
    """
    Generate code using the specified generator with error handling.

    Emission failures produce a failed result with no code; formatting
    failures only add a warning and keep the unformatted code.

    Returns:
        GenerationResult with code, warnings, and metadata
    """
    try:
        warnings = generator.validate_entities(entities)
        code = generator.generate(entities, package)
    except Exception as e:
        logger.debug("Generation failed", exc_info=True)
        return GenerationResult.error(f"Code generation failed: {e}", exception=e)

    formatted = True
    try:
        code = generator.format_code(code)
    except FormatError as e:
        logger.warning("warning: internal error: %s", e)
        logger.warning("warning: import the generated module to analyze the error")
        warnings.append(f"Generated code was written unformatted: {e}")
        formatted = False

    summary = summarize(entities)
    metadata = {
        "target": generator.target_name,
        "file_extension": generator.file_extension,
        "package": package.name,
        "source_files": len(package.files),
        "vertices": summary["vertex"],
        "edges": summary["edge"],
        "plain_classes": summary["plain"],
        "formatted": formatted,
    }

    return GenerationResult(code, warnings, metadata)


def default_output_path(package: SourcePackage, config: GeneratorConfig) -> Path:
    """Output path from configuration, defaulting to a file beside the sources."""
    if config.output_file:
        return Path(config.output_file)
    return package.directory / DEFAULT_OUTPUT_NAME


def write_output(result: GenerationResult, output_path: Path) -> Path:
    """Write a successful result; failed results are never written."""
    if not result.success:
        raise ValueError("Refusing to write a failed generation result")
    output_path.write_text(result.code, encoding="utf-8")
    logger.info("Wrote %s", output_path)
    return output_path
