"""Tests for markdown helpers and the similarity heuristic."""

from __future__ import annotations

import pytest

from agentlint.analysis.markdown import (
    code_block_lines,
    estimate_tokens,
    extract_code_blocks,
    extract_headings,
    find_line,
    inside_example,
    strip_bad_examples,
    strip_code_blocks,
)
from agentlint.analysis.similarity import (
    calculate_similarity,
    normalize_instruction,
    polarity,
    strip_polarity,
    token_similarity,
    tokenize,
)

DOC = """\
# Title

Intro text.

```bash
# not a heading
git status
```

## Section
"""


class TestMarkdown:
    def test_estimate_tokens(self) -> None:
        assert estimate_tokens("abcd" * 10) == 10
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("") == 0
        assert estimate_tokens(None) == 0

    def test_code_blocks(self) -> None:
        blocks = extract_code_blocks(DOC)
        assert len(blocks) == 1
        assert blocks[0].language == "bash"
        assert blocks[0].code == "# not a heading\ngit status"
        assert (blocks[0].start_line, blocks[0].end_line) == (5, 8)
        assert code_block_lines(DOC) == {5, 6, 7, 8}

    def test_unclosed_fence_runs_to_end(self) -> None:
        blocks = extract_code_blocks("text\n```json\n{}")
        assert blocks[0].end_line == 3

    def test_headings_skip_code(self) -> None:
        headings = extract_headings(DOC)
        assert [(h.level, h.text, h.line) for h in headings] == [
            (1, "Title", 1),
            (2, "Section", 10),
        ]

    def test_strip_keeps_line_numbers(self) -> None:
        stripped = strip_code_blocks(DOC)
        assert "git status" not in stripped
        assert stripped.count("\n") == DOC.count("\n")

        bad = "a\n<bad-example>\nSHOUT\n</bad-example>\nb"
        cleaned = strip_bad_examples(bad)
        assert "SHOUT" not in cleaned
        assert cleaned.count("\n") == bad.count("\n")

    def test_inside_example(self) -> None:
        text = "intro\n<good-example>\n```json\n{}\n```\n</good-example>\n"
        assert inside_example(text, 3)
        assert not inside_example("plain\n```json\n{}\n```", 2)

    def test_find_line(self) -> None:
        assert find_line(DOC, "## Section") == 10
        assert find_line(DOC, "absent") == 0
        assert find_line(DOC, "") == 0


class TestSimilarity:
    def test_tokenize_drops_short_words(self) -> None:
        assert tokenize("Do it on the main branch") == {"the", "main", "branch"}

    def test_identical_text(self) -> None:
        assert calculate_similarity("push to main", "push to main") == 1.0

    def test_unusable_input(self) -> None:
        assert calculate_similarity(None, "text") == 0.0
        assert calculate_similarity("a b", "c d") == 0.0

    def test_partial_overlap(self) -> None:
        score = calculate_similarity("always run the tests", "never run the tests")
        assert score == pytest.approx(3 / 5)

    def test_token_sets_score_like_text(self) -> None:
        left, right = "always run the tests", "never run the tests"
        assert token_similarity(tokenize(left), tokenize(right)) == calculate_similarity(
            left, right
        )
        assert token_similarity(frozenset(), {"tests"}) == 0.0

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("ALWAYS run tests", 1),
            ("You MUST lint", 1),
            ("NEVER push", -1),
            ("You MUST NOT push", -1),
            ("Don't push", -1),
            ("Run the tests", 0),
        ],
    )
    def test_polarity(self, text: str, expected: int) -> None:
        assert polarity(text) == expected

    def test_strip_polarity(self) -> None:
        assert tokenize(strip_polarity("NEVER push to main")) == {"push", "main"}

    def test_normalize_instruction(self) -> None:
        assert normalize_instruction("  Run   THE tests ") == "run the tests"
