"""Tests for the bounded matcher.

Verifies:
    - Argument validation.
    - Short texts are searched directly.
    - Long texts are covered by overlapping windows without losing matches
      at window seams.
    - Match offsets refer to the full text.
    - Whitespace folding and its offset map.
    - Bounded time: every catalog pattern finishes quickly on crafted
      pathological inputs, and cost grows linearly with input length.
"""

from __future__ import annotations

import re
import time

import pytest

from skillscreen.core.scanner.matcher import (
    DEFAULT_OVERLAP,
    DEFAULT_WINDOW,
    BoundedMatcher,
    fold_line,
    fold_text,
)
from skillscreen.core.scanner.models import FindingCategory
from skillscreen.core.scanner.patterns import CatalogPattern, all_patterns


class TestConstruction:
    """Window and overlap validation."""

    def test_defaults(self) -> None:
        """Defaults are a 4096-character window with 512 overlap."""
        matcher = BoundedMatcher()
        assert matcher.window == DEFAULT_WINDOW == 4096
        assert matcher.overlap == DEFAULT_OVERLAP == 512

    @pytest.mark.parametrize(("window", "overlap"), [(0, 0), (-5, 0), (10, 10), (10, -1)])
    def test_invalid_arguments_rejected(self, window: int, overlap: int) -> None:
        """Window must be positive and overlap in [0, window)."""
        with pytest.raises(ValueError):
            BoundedMatcher(window=window, overlap=overlap)


class TestMatching:
    """Functional behaviour of test() and exists()."""

    def test_short_text_direct_search(self) -> None:
        """A text within one window is searched as a whole."""
        match = BoundedMatcher().test(re.compile("needle"), "hay needle hay")
        assert match is not None
        assert match.start() == 4

    def test_no_match_returns_none(self) -> None:
        """A missing pattern yields None and exists() is False."""
        matcher = BoundedMatcher()
        assert matcher.test(re.compile("needle"), "hay" * 5000) is None
        assert matcher.exists(re.compile("needle"), "hay" * 5000) is False

    def test_offsets_are_absolute(self) -> None:
        """Offsets of a match found in a later window refer to the full text."""
        matcher = BoundedMatcher(window=100, overlap=20)
        text = "x" * 1000 + "needle" + "x" * 50
        match = matcher.test(re.compile("needle"), text)
        assert match is not None
        assert match.start() == 1000
        assert text[match.start():match.end()] == "needle"

    def test_match_across_window_seam(self) -> None:
        """A match straddling a window boundary is still found via the overlap."""
        matcher = BoundedMatcher(window=100, overlap=20)
        # First window covers [0, 100); "needle" spans 97..103.
        text = "x" * 97 + "needle" + "x" * 200
        assert matcher.exists(re.compile("needle"), text)

    def test_match_at_very_end(self) -> None:
        """The final partial window is searched."""
        matcher = BoundedMatcher(window=100, overlap=20)
        text = "x" * 1234 + "tail"
        assert matcher.exists(re.compile("tail"), text)

    def test_first_match_is_returned(self) -> None:
        """When several matches exist the earliest one wins."""
        matcher = BoundedMatcher(window=100, overlap=20)
        text = "x" * 150 + "one" + "x" * 300 + "two"
        match = matcher.test(re.compile("one|two"), text)
        assert match is not None
        assert match.group(0) == "one"

    def test_start_anchor_means_text_start(self) -> None:
        """^ only matches at the start of the whole text, not of each window."""
        matcher = BoundedMatcher(window=100, overlap=20)
        # "xyz" begins exactly at the start of the second window.
        text = "a" * 80 + "xyz" + "a" * 300
        anchored = re.compile("^xyz")
        assert matcher.test(anchored, text) is None

    def test_end_anchor_ignores_inner_seam(self) -> None:
        """$ does not match where an inner window happens to end."""
        matcher = BoundedMatcher(window=100, overlap=20)
        # ".pem" ends exactly at offset 100, the end of the first window.
        text = "a" * 96 + ".pem" + "b" * 300
        assert matcher.test(re.compile(r"\.pem$"), text) is None

    def test_end_anchor_at_real_end(self) -> None:
        """$ still matches at the end of the whole text."""
        matcher = BoundedMatcher(window=100, overlap=20)
        assert matcher.exists(re.compile(r"\.pem$"), "a" * 300 + "key.pem")

    def test_word_boundary_ignores_inner_seam(self) -> None:
        """\\b does not match where an inner window happens to end."""
        matcher = BoundedMatcher(window=100, overlap=20)
        text = "a" * 96 + " DAN" + "GER" + "b" * 300
        assert matcher.test(re.compile(r"\bDAN\b"), text) is None

    def test_genuine_match_at_seam_found_in_next_window(self) -> None:
        """A real match ending on an inner seam is found again by the next window."""
        matcher = BoundedMatcher(window=100, overlap=20)
        text = "a" * 96 + " DAN" + " " + "b" * 300
        match = matcher.test(re.compile(r"\bDAN\b"), text)
        assert match is not None
        assert match.start() == 97


class TestFolding:
    """Whitespace folding ahead of matching."""

    def test_fold_line(self) -> None:
        """Every run of two or more blanks becomes one space."""
        assert fold_line("a  b\t\t c d") == "a b c d"

    def test_fold_text_keeps_line_structure(self) -> None:
        """Runs keep at most two line breaks; runs without one become a space."""
        folded = fold_text("a   b\n  c\n\n\n\nd\r\n\r\ne")
        assert folded.text == "a b\nc\n\nd\n\ne"

    def test_single_characters_untouched(self) -> None:
        """Lone whitespace characters are not rewritten."""
        folded = fold_text("a b\nc\td")
        assert folded.text == "a b\nc\td"
        assert folded.original_offset(6) == 6

    def test_original_offset(self) -> None:
        """Offsets after a folded run shift back by the characters removed."""
        original = "ab" + " " * 10 + "cd\n\n\n\nef"
        folded = fold_text(original)
        assert folded.text == "ab cd\n\nef"
        for char in "abcdef":
            assert original[folded.original_offset(folded.text.index(char))] == char

    def test_separators_not_folded(self) -> None:
        """Line and paragraph separators stay visible to the obfuscation patterns."""
        text = "a\u2028\u2029\u202f\u2028b"
        assert fold_text(text).text == text


# ---------------------------------------------------------------------------
# Bounded time on pathological inputs
# ---------------------------------------------------------------------------

# Shapes that maximise backtracking for the catalog: long runs of a
# pattern's own building blocks that never complete a match.
_PATHOLOGICAL_SEEDS = (
    " ",
    "\n",
    "\r",
    "a",
    "ignore ",
    "send to ",
    "<!--",
    "<instruction",
    "[[",
    "$(",
    "\\x41",
    "curl ",
    "sudo ",
    "fetch('",
    "base64:",
    "\u200b",
    "\u0430",
    "\u0301",
    "'role':",
    "[click](",
    "---",
)

_INPUT_LENGTH = 50_000
_PER_PATTERN_BUDGET_SECONDS = 2.0


def _pathological_inputs(length: int) -> list[str]:
    return [(seed * (length // len(seed) + 1))[:length] for seed in _PATHOLOGICAL_SEEDS]


class TestBoundedTime:
    """Matching cost stays linear in the input length."""

    @pytest.mark.parametrize(
        ("category", "pattern"),
        all_patterns(),
        ids=lambda v: v.value if isinstance(v, FindingCategory) else None,
    )
    def test_catalog_pattern_on_pathological_inputs(
        self, category: FindingCategory, pattern: CatalogPattern
    ) -> None:
        """Each catalog pattern handles every crafted input within budget."""
        matcher = BoundedMatcher()
        inputs = _pathological_inputs(_INPUT_LENGTH)
        start = time.perf_counter()
        for text in inputs:
            matcher.test(pattern.regex, text)
        elapsed = time.perf_counter() - start
        assert elapsed < _PER_PATTERN_BUDGET_SECONDS, (
            f"{category.value} pattern {pattern.source!r} took {elapsed:.2f}s"
        )

    def test_quadratic_pattern_is_linear_under_windowing(self) -> None:
        """A pattern that is quadratic for plain search scales linearly when windowed."""
        # Every start position scans to the end before failing.
        pattern = re.compile(r"a[\s\S]*b")
        matcher = BoundedMatcher(window=256, overlap=32)

        def timed(length: int) -> float:
            text = "a" * length
            start = time.perf_counter()
            matcher.test(pattern, text)
            return time.perf_counter() - start

        timed(2_000)  # warm up
        small = max(timed(10_000), 1e-4)
        large = timed(40_000)
        # 4x input: linear is ~4x, quadratic would be ~16x.
        assert large / small < 10
