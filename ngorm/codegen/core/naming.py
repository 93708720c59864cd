"""
Identifier policy for generated queries.

Derives the labels and property names used in nGQL from declared Python
names.
"""


class IdentifierPolicy:
    """Maps declared names to external (graph) names."""

    def __init__(self, trim_prefix: str = ""):
        """
        Initialize identifier policy.

        Args:
            trim_prefix: Literal prefix removed from declared names when present
        """
        self.trim_prefix = trim_prefix or ""

    def trim(self, name: str) -> str:
        """Remove the configured prefix once, if present."""
        if self.trim_prefix and name.startswith(self.trim_prefix):
            return name[len(self.trim_prefix):]
        return name

    def external_name(self, declared_name: str) -> str:
        """Lower-cased, prefix-trimmed form of a declared name."""
        return self.trim(declared_name).lower()

