"""
History sanitization and truncation.

Provider APIs reject requests whose history does not start on a user turn,
whose trailing turn is an unanswered tool call, or whose tool results do
not follow the call that produced them. ``sanitize_history`` repairs a
history so those rules hold and runs before every outbound request.
"""

from __future__ import annotations

from codesense.logging import get_logger
from codesense.models import USER, Turn

logger = get_logger("history")


def sanitize_history(turns: list[Turn]) -> list[Turn]:
    """
    Return a copy of ``turns`` that satisfies the turn-ordering invariants.

    - Structurally invalid turns (unknown role, no parts) are dropped.
    - A tool-call turn must be immediately followed by a user turn carrying
      tool results, otherwise it is orphaned and dropped.
    - A tool-result turn must immediately follow a retained tool-call turn.
    - If the first retained turn is not a user turn the whole history is
      discarded and the caller must reseed it.

    Turns are never mutated. Running the sanitizer on its own output
    returns the same sequence.
    """
    valid = [t for t in turns if t.is_valid]

    retained: list[Turn] = []
    for i, turn in enumerate(valid):
        if turn.has_tool_calls:
            following = valid[i + 1] if i + 1 < len(valid) else None
            if following is None or not following.has_tool_results:
                logger.debug("Dropping orphaned tool-call turn at %d", i)
                continue
        elif turn.has_tool_results:
            if not retained or not retained[-1].has_tool_calls:
                logger.debug("Dropping unmatched tool-result turn at %d", i)
                continue
        retained.append(turn)

    while retained and retained[-1].has_tool_calls:
        retained.pop()

    if retained and retained[0].role != USER:
        logger.info("History does not start on a user turn, discarding %d turns", len(retained))
        return []

    if len(retained) != len(turns):
        logger.debug("Sanitized history: %d -> %d turns", len(turns), len(retained))
    return retained


def trim_history(turns: list[Turn], seed: Turn, max_turns: int) -> list[Turn]:
    """
    Bound the history to ``max_turns`` entries.

    Keeps ``seed`` (the instruction driving the current run) followed by the
    most recent turns. The kept suffix never starts on a tool-result turn,
    so no result is separated from its call. Older turns are discarded
    without any summarization.
    """
    if len(turns) <= max_turns:
        return list(turns)

    start = len(turns) - (max_turns - 1)
    while start < len(turns) and turns[start].has_tool_results:
        start += 1

    if any(t is seed for t in turns[start:]):
        # Seed is kept in place, so the suffix itself must open on a user turn
        while turns[start].role != USER or turns[start].has_tool_results:
            start += 1
        trimmed = turns[start:]
    else:
        trimmed = [seed, *turns[start:]]

    logger.info("History trimmed to %d turns (limit %d)", len(trimmed), max_turns)
    return trimmed
