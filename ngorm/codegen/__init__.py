"""
ngorm code generation module.

Scans entity declarations and generates Nebula graph mappers for them.
"""

from pathlib import Path

from .core.config import GeneratorConfig, load_config
from .core.errors import GeneratorError
from .core.extractor import ModelExtractor, SourcePackage, load_package
from .core.generator import CodeGenerator, GenerationResult, generate_code
from .core.naming import IdentifierPolicy
from .nebula.generator import NebulaGenerator


# Convenience functions
def generate_from_paths(paths, config=None, invocation="ngormgen"):
    """
    Generate mappers for the declarations found at ``paths``.

    Args:
        paths: One directory, or a list of files from one directory
        config: GeneratorConfig, dict of options, or None for defaults
        invocation: Command line recorded in the generated banner

    Returns:
        Tuple of (SourcePackage, GenerationResult)

    Raises:
        ConfigError: If the paths or configuration are invalid
    """
    if not isinstance(config, GeneratorConfig):
        config = load_config(custom_config=config)

    package = load_package(paths)
    extractor = ModelExtractor(IdentifierPolicy(config.trim_prefix), config.type_names)

    try:
        entities = extractor.extract(package)
    except GeneratorError as e:
        return package, GenerationResult.error(str(e), exception=e)

    generator = NebulaGenerator(config, invocation)
    return package, generate_code(generator, entities, package)


def quick_generate(source, module="models", **options):
    """
    Quick code generation from declaration source text.

    Args:
        source: Python source declaring Tag and Edge classes
        module: Module name the source is imported under
        **options: Generator options

    Returns:
        Generated code string
    """
    config = load_config(custom_config=options)
    extractor = ModelExtractor(IdentifierPolicy(config.trim_prefix), config.type_names)
    entities = extractor.extract_source(source, module, f"{module}.py")

    package = SourcePackage(directory=Path("."), name=config.package_name or module)
    result = generate_code(NebulaGenerator(config), entities, package)

    if result.success:
        return result.code
    else:
        raise RuntimeError(f"Code generation failed: {result.error_message}")


__version__ = "0.1.0"

# Export main interfaces
__all__ = [
    "CodeGenerator",
    "GenerationResult",
    "GeneratorConfig",
    "NebulaGenerator",
    "generate_code",
    "generate_from_paths",
    "quick_generate",
]
