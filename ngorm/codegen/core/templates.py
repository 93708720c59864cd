"""
Template engine wrapper for code generation.

Provides a simple interface for Jinja2 template rendering
with common utilities for emitting Python source.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import (
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
    select_autoescape,
)


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


class TemplateEngine:
    """Wrapper for Jinja2 template engine with code generation utilities."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize template engine.

        Args:
            template_dir: Directory containing template files
        """
        self.template_dir = template_dir
        self._env = None
        self._setup_environment()

    def _setup_environment(self):
        """Setup Jinja2 environment with code generation utilities."""
        if self.template_dir and self.template_dir.exists():
            loader = FileSystemLoader(str(self.template_dir))
        else:
            # Use in-memory templates
            loader = DictLoader({})

        self._env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml"], default_for_string=False),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

        # Add custom filters for code generation
        self._env.filters["pystr"] = self._pystr_filter

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template file
            context: Variables to pass to template

        Returns:
            Rendered template content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def render_string(self, template_string: str, context: Dict[str, Any]) -> str:
        """
        Render a template string with the given context.

        Args:
            template_string: Template content as string
            context: Variables to pass to template

        Returns:
            Rendered content
        """
        try:
            template = self._env.from_string(template_string)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template string: {e}") from e

    def add_template(self, name: str, content: str):
        """
        Add an in-memory template.

        Args:
            name: Template name
            content: Template content
        """
        if not isinstance(self._env.loader, DictLoader):
            # Convert to DictLoader to support in-memory templates
            self._env.loader = DictLoader({})

        self._env.loader.mapping[name] = content

    def template_exists(self, template_name: str) -> bool:
        """Check if a template can be loaded."""
        try:
            self._env.get_template(template_name)
            return True
        except JinjaTemplateError:
            return False

    # Template filters for code generation

    def _pystr_filter(self, value: Any) -> str:
        """Render a value as a double-quoted Python string literal."""
        return json.dumps(str(value))


def create_template_engine(template_dir: Optional[Path] = None) -> TemplateEngine:
    """Create a template engine, optionally bound to a template directory."""
    return TemplateEngine(template_dir)
