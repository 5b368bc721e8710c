"""
Interaction gate for the review variant.

The review agent pauses when the model's text looks like a yes/no
question and asks the host. Question detection is a fuzzy text heuristic
and can be replaced by passing another ``detector``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from codesense.logging import get_logger

logger = get_logger("gate")

# Host capability: question text -> bool (sync or async)
AskYesNo = Callable[[str], Any]


def looks_like_question(text: str) -> bool:
    """True if ``text`` reads like a request for confirmation."""
    return "Yes" in text or "apply these fixes" in text.lower() or "?" in text


def parse_yes_no(answer: str | None) -> bool:
    """Interpret a free-form answer; only "y" and "yes" count as yes."""
    return (answer or "").strip().lower() in ("y", "yes")


class InteractionGate:
    """Routes question-like model text to a host yes/no prompt."""

    def __init__(
        self,
        ask_yes_no: AskYesNo,
        detector: Callable[[str], bool] = looks_like_question,
    ) -> None:
        self.ask_yes_no = ask_yes_no
        self.detector = detector
        self.pending_question: str | None = None

    def is_question(self, text: str) -> bool:
        return bool(text) and self.detector(text)

    async def confirm(self, question: str) -> bool:
        """Ask the host and wait for its answer."""
        self.pending_question = question
        try:
            answer = self.ask_yes_no(question)
            if inspect.isawaitable(answer):
                answer = await answer
        finally:
            self.pending_question = None

        if isinstance(answer, str):
            answer = parse_yes_no(answer)
        logger.info("User answered %s", "yes" if answer else "no")
        return bool(answer)
