"""Bounded pattern matching.

Python's ``re`` engine backtracks, so a single ``search`` over an
adversarially-shaped string can take super-linear time. The scanner must
never let skill content turn a pattern check into a denial of service.

``BoundedMatcher`` caps the text handed to any one match attempt at a fixed
window. Longer texts are covered by sliding overlapping windows across
them with ``Pattern.search(text, pos, endpos)``, which avoids copying and
keeps ``^`` anchored to the real start of the string. The cost of one
window is bounded by a constant that depends only on the window size and
the pattern, and the number of windows grows linearly with the text, so
total matching time is ``O(len(text))``.

``endpos`` makes ``$``, ``\\b`` and lookaheads see a false end of text at
every inner seam, so a match touching the end of a non-final window is
discarded. The next window starts ``overlap`` characters earlier and finds
it again if it is genuine.

A match is only missed if it is longer than the window overlap. Every
catalog pattern has a bounded maximum width below the default overlap.
Whitespace repetition in the catalog is bounded too, which padding could
otherwise stretch without limit, so text is folded with ``fold_line`` or
``fold_text`` before it is matched.
"""

from __future__ import annotations

import re
from bisect import bisect_right

DEFAULT_WINDOW = 4096
DEFAULT_OVERLAP = 512

_LINE_WHITESPACE_RUN = re.compile(r"\s{2,}")
# Line and paragraph separators and U+202F are left alone: the AI-defence
# catalog treats them as invisible characters.
_TEXT_WHITESPACE_RUN = re.compile(r"[^\S\u2028\u2029\u202f]{2,}")


def fold_line(line: str) -> str:
    """Collapse every whitespace run in ``line`` to one space."""
    return _LINE_WHITESPACE_RUN.sub(" ", line)


def _fold_run(run: str) -> str:
    breaks = run.count("\n") + run.count("\r") - run.count("\r\n")
    return "\n" * min(breaks, 2) or " "


class FoldedText:
    """Multi-line text with whitespace runs collapsed.

    A run becomes a single space, a single ``\\n`` if it holds one line
    break, or ``\\n\\n`` if it holds more. Offsets into ``text`` map back to
    the unfolded original with ``original_offset``.
    """

    def __init__(self, text: str, marks: tuple[int, ...], shifts: tuple[int, ...]) -> None:
        self.text = text
        self._marks = marks
        self._shifts = shifts

    def original_offset(self, offset: int) -> int:
        """Map an offset of a non-whitespace character back to the original."""
        index = bisect_right(self._marks, offset) - 1
        return offset if index < 0 else offset + self._shifts[index]


def fold_text(text: str) -> FoldedText:
    """Fold ``text`` for whole-document matching, keeping an offset map."""
    pieces: list[str] = []
    marks: list[int] = []
    shifts: list[int] = []
    last = folded_length = shift = 0
    for run in _TEXT_WHITESPACE_RUN.finditer(text):
        replacement = _fold_run(run.group(0))
        pieces.append(text[last:run.start()])
        pieces.append(replacement)
        folded_length += run.start() - last + len(replacement)
        shift += len(run.group(0)) - len(replacement)
        marks.append(folded_length)
        shifts.append(shift)
        last = run.end()
    pieces.append(text[last:])
    return FoldedText("".join(pieces), tuple(marks), tuple(shifts))


class BoundedMatcher:
    """Pattern matcher with a fixed per-attempt text budget.

    Args:
        window: Maximum number of characters any single match attempt may
            examine.
        overlap: Characters shared by consecutive windows. Must be smaller
            than ``window``.

    Usage::

        matcher = BoundedMatcher()
        match = matcher.test(pattern, text)
        if match is not None:
            print(match.start(), match.group(0))
    """

    def __init__(self, window: int = DEFAULT_WINDOW, overlap: int = DEFAULT_OVERLAP) -> None:
        if window <= 0:
            raise ValueError(f"window must be positive, got {window}")
        if not 0 <= overlap < window:
            raise ValueError(f"overlap must be in [0, window), got {overlap}")
        self.window = window
        self.overlap = overlap

    def test(self, pattern: re.Pattern[str], text: str) -> re.Match[str] | None:
        """Return the first match of ``pattern`` in ``text``, or None.

        Offsets in the returned match refer to ``text`` itself, not to the
        window it was found in.
        """
        length = len(text)
        if length <= self.window:
            return pattern.search(text)

        step = self.window - self.overlap
        start = 0
        while start < length:
            end = min(start + self.window, length)
            match = pattern.search(text, start, end)
            if match is not None and (end == length or match.end() < end):
                return match
            if end == length:
                break
            start += step
        return None

    def exists(self, pattern: re.Pattern[str], text: str) -> bool:
        """Return True if ``pattern`` matches anywhere in ``text``."""
        return self.test(pattern, text) is not None
