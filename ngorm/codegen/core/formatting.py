"""
Validation and normalisation of generated Python source.
"""

import ast

from .errors import FormatError


def format_source(code: str) -> str:
    """
    Validate generated code and normalise its whitespace.

    Args:
        code: Raw generated code

    Returns:
        Formatted code

    Raises:
        FormatError: If the code is not valid Python
    """
    try:
        ast.parse(code)
    except SyntaxError as e:
        raise FormatError(f"invalid Python generated: line {e.lineno}: {e.msg}") from e

    # Remove trailing whitespace and collapse runs of more than two blank lines
    result_lines = []
    blank_count = 0

    for line in code.split("\n"):
        line = line.rstrip()
        if not line:
            blank_count += 1
            if blank_count <= 2:
                result_lines.append(line)
        else:
            blank_count = 0
            result_lines.append(line)

    return "\n".join(result_lines).rstrip("\n") + "\n"
