"""
Nebula mapper generator module.

Generates Python mapper classes that persist and query Tag and Edge
entities with nGQL.
"""

from .generator import NebulaGenerator, create_nebula_generator
from .types import NebulaType, SemanticType, TypeCodec

__all__ = [
    "NebulaGenerator",
    "NebulaType",
    "SemanticType",
    "TypeCodec",
    "create_nebula_generator",
]
