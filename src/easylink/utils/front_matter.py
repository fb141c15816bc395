"""YAML front matter utilities for markdown notes.

Notes may open with a YAML block delimited by ``---`` lines:

    ---
    aliases: [ML]
    tags: [study]
    ---
    # Introduction to Machine Learning

The block is reported as a ``yaml`` section so it never becomes a searchable
content block.
"""

import re
from typing import Any

import yaml


DELIMITER = "---"

_FRONT_MATTER_PATTERN = re.compile(
    rf"\A{re.escape(DELIMITER)}[ \t]*\r?\n(.*?)^{re.escape(DELIMITER)}[ \t]*\r?$",
    re.DOTALL | re.MULTILINE,
)


def find_front_matter(content: str) -> tuple[dict[str, Any], int]:
    """Locate front matter at the top of ``content``.

    Args:
        content: Full markdown content

    Returns:
        Tuple of (front_matter_dict, closing_line_index). The closing line index
        is -1 when the note has no front matter block. Invalid YAML still counts
        as a front matter block, with an empty dict.

    Example:
        >>> find_front_matter("---\\ntitle: Hi\\n---\\n# Body")
        ({'title': 'Hi'}, 2)
    """
    match = _FRONT_MATTER_PATTERN.match(content)
    if not match:
        return {}, -1

    closing_line = content.count("\n", 0, match.end())
    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, closing_line

    if not isinstance(metadata, dict):
        return {}, closing_line
    return metadata, closing_line
