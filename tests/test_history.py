"""Tests for history sanitization and trimming."""

from __future__ import annotations

from codesense.history import sanitize_history, trim_history
from codesense.models import FunctionCall, TextPart, ToolResultPart, Turn


def _call_turn(*names: str) -> Turn:
    return Turn.calls([FunctionCall(name=n, args={}) for n in names])


def _result_turn(*names: str) -> Turn:
    return Turn.results([ToolResultPart(name=n, response={"result": {}}) for n in names])


class TestSanitizeHistory:
    """Tests for sanitize_history."""

    def test_valid_history_unchanged(self) -> None:
        history = [
            Turn.user("hi"),
            _call_turn("readFile"),
            _result_turn("readFile"),
            Turn.model("done"),
        ]

        assert sanitize_history(history) == history

    def test_idempotent(self) -> None:
        """Sanitizing the sanitizer's output changes nothing."""
        history = [
            Turn.user("hi"),
            _call_turn("a"),
            Turn.user("interrupting"),
            _result_turn("b"),
            Turn(role="model", parts=()),
            _call_turn("c"),
            _result_turn("c"),
            _call_turn("d"),
        ]

        once = sanitize_history(history)
        twice = sanitize_history(once)

        assert twice == once

    def test_removes_only_trailing_unanswered_call(self) -> None:
        history = [
            Turn.user("hi"),
            _call_turn("readFile"),
            _result_turn("readFile"),
            Turn.model("ok"),
            Turn.user("again"),
            _call_turn("writeFile"),
        ]

        assert sanitize_history(history) == history[:-1]

    def test_non_user_start_returns_empty(self) -> None:
        history = [Turn.model("hello"), Turn.user("hi")]

        assert sanitize_history(history) == []

    def test_orphan_call_in_middle_dropped(self) -> None:
        history = [
            Turn.user("hi"),
            _call_turn("readFile"),
            Turn.user("new question"),
            Turn.model("answer"),
        ]

        result = sanitize_history(history)

        assert result == [history[0], history[2], history[3]]

    def test_unmatched_results_dropped(self) -> None:
        history = [Turn.user("hi"), Turn.model("ok"), _result_turn("readFile")]

        assert sanitize_history(history) == history[:2]

    def test_invalid_turns_dropped(self) -> None:
        history = [
            Turn(role="system", parts=(TextPart("x"),)),
            Turn(role="user", parts=()),
            Turn.user("hi"),
        ]

        assert sanitize_history(history) == [history[2]]

    def test_does_not_mutate_input(self) -> None:
        history = [Turn.user("hi"), _call_turn("a")]
        snapshot = list(history)

        sanitize_history(history)

        assert history == snapshot

    def test_empty(self) -> None:
        assert sanitize_history([]) == []


class TestTrimHistory:
    """Tests for trim_history."""

    def test_within_limit_returns_copy(self) -> None:
        history = [Turn.user("a"), Turn.model("b")]

        result = trim_history(history, history[0], max_turns=5)

        assert result == history
        assert result is not history

    def test_keeps_seed_and_recent_suffix(self) -> None:
        seed = Turn.user("seed")
        history = [seed] + [Turn.user(str(i)) if i % 2 else Turn.model(str(i)) for i in range(1, 10)]

        result = trim_history(history, seed, max_turns=4)

        assert len(result) == 4
        assert result[0] is seed
        assert result[1:] == history[-3:]

    def test_suffix_never_starts_with_results(self) -> None:
        seed = Turn.user("seed")
        history = [
            seed,
            Turn.model("a"),
            Turn.user("b"),
            _call_turn("x"),
            _result_turn("x"),
            Turn.model("c"),
        ]

        result = trim_history(history, seed, max_turns=3)

        assert result == [seed, history[5]]

    def test_seed_inside_suffix_keeps_current_run_tool_turns(self) -> None:
        """A window landing on an older model reply moves up to a user turn."""
        seed = Turn.user("second request")
        history = [
            Turn.user("first request"),
            _call_turn("listDirectory"),
            _result_turn("listDirectory"),
            Turn.model("first done"),
            seed,
            _call_turn("listDirectory"),
            _result_turn("listDirectory"),
        ]

        result = trim_history(history, seed, max_turns=6)

        assert result == history[4:]
        assert result[0] is seed
        assert sanitize_history(result) == result

    def test_seed_inside_suffix_not_duplicated(self) -> None:
        old = [Turn.user("old"), Turn.model("old reply")]
        seed = Turn.user("seed")
        history = old + [seed, _call_turn("x"), _result_turn("x")]

        result = trim_history(history, seed, max_turns=4)

        assert result == [seed, history[3], history[4]]
        assert sum(1 for t in result if t is seed) == 1
