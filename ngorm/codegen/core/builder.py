"""
Append-only text buffer for generated source.
"""

import io


class SourceBuilder:
    """Accumulates emitted fragments until ``finish`` is called."""

    def __init__(self):
        self._buf = io.StringIO()
        self._finished = False

    def write(self, text: str) -> "SourceBuilder":
        if self._finished:
            raise RuntimeError("SourceBuilder already finished")
        self._buf.write(text)
        return self

    def fragment(self, text: str, blank_lines: int = 1) -> "SourceBuilder":
        """Append a fragment separated from the previous one by blank lines."""
        if self._buf.tell():
            self.write("\n" * blank_lines)
        return self.write(text if text.endswith("\n") else text + "\n")

    def finish(self) -> str:
        """Seal the builder and return the accumulated text."""
        self._finished = True
        return self._buf.getvalue()
