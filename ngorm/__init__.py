"""
ngorm: code-generated object mapping for Nebula graph entities.

Declare vertices and edges with ``ngorm.base``, then run ``ngormgen`` on the
declaring package to produce mapper classes.
"""

from .base import Edge, QueryError, Tag, UnknownFieldError, prop

__version__ = "0.1.0"

__all__ = ["Edge", "QueryError", "Tag", "UnknownFieldError", "prop"]
