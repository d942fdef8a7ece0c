"""Markdown structural context for each line of a skill document.

Skill documents routinely quote attacks inside fenced code blocks and
tables to explain what a skill defends against. The classifier labels every
line with the structure it sits in so detectors can down-weight matches
found in documentation rather than in live instructions.

The pass is a single forward scan carrying one piece of state, whether the
cursor is inside a fenced block.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

_FENCE_PATTERN = re.compile(r"^(?:`{3,}|~{3,})")
_LIST_ITEM_PATTERN = re.compile(r"^(?:[-*+]|\d+[.)])\s")


@dataclass(frozen=True)
class LineContext:
    """Structural classification of one line.

    Attributes:
        in_code_block: Inside a fenced block, or the fence delimiter itself.
        in_table: The trimmed line starts with ``|``.
        is_indented_code: Four or more leading spaces (or a tab), not a list
            item, and not already inside a fence.
        is_inline_code: Contains a backtick pair and is not inside a fence.
    """

    in_code_block: bool = False
    in_table: bool = False
    is_indented_code: bool = False
    is_inline_code: bool = False

    @property
    def is_documentation_context(self) -> bool:
        return self.in_code_block or self.in_table or self.is_indented_code


_PLAIN = LineContext()


def classify(content: str) -> list[LineContext]:
    """Label every line of ``content`` with its Markdown context.

    Lines are the result of ``content.split("\\n")``, so the returned list
    is index-aligned with line numbers minus one.

    Args:
        content: The raw Markdown document.

    Returns:
        One ``LineContext`` per line.
    """
    contexts: list[LineContext] = []
    in_fence = False

    for line in content.split("\n"):
        trimmed = line.strip()

        if _FENCE_PATTERN.match(trimmed):
            # The delimiter line belongs to the block it opens or closes.
            in_fence = not in_fence
            contexts.append(LineContext(in_code_block=True))
            continue

        if in_fence:
            contexts.append(LineContext(in_code_block=True))
            continue

        in_table = trimmed.startswith("|")
        is_indented = (
            (line.startswith("    ") or line.startswith("\t"))
            and bool(trimmed)
            and not _LIST_ITEM_PATTERN.match(trimmed)
        )
        has_inline = line.count("`") >= 2

        if not (in_table or is_indented or has_inline):
            contexts.append(_PLAIN)
            continue

        contexts.append(LineContext(
            in_table=in_table,
            is_indented_code=is_indented,
            is_inline_code=has_inline,
        ))

    return contexts


def is_documentation_line(contexts: Sequence[LineContext], index: int) -> bool:
    """Return True if the 0-based line ``index`` is in documentation context."""
    if 0 <= index < len(contexts):
        return contexts[index].is_documentation_context
    return False
