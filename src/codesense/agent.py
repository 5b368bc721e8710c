"""
Agent loop.

An ``AgentSession`` owns one conversation: its turn history, operating
mode and cancellation token. Each run drives the provider/tool cycle
until the model answers with text, the turn budget is spent, the user
declines a review proposal, or the run is aborted.

Example:
    from codesense import AgentConfig, AgentSession, create_project_tools
    from codesense.adapters import default_registry

    config = AgentConfig.from_env()
    adapter = default_registry().create(config.provider, config)
    session = AgentSession(adapter, create_project_tools("./my-app"), config)

    result = await session.run_message("Add a README", "./my-app")
    print(result.text)
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from codesense.adapters.base import LLMAdapter
from codesense.config import AgentConfig
from codesense.errors import AgentAbortedError, ConversationStateError
from codesense.events import (
    DONE,
    ERROR,
    TEXT,
    TOOL_CALL,
    TOOL_RESULT,
    AgentCallbacks,
    DoneEvent,
    ErrorEvent,
    EventBus,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from codesense.gate import InteractionGate
from codesense.history import sanitize_history, trim_history
from codesense.logging import get_logger
from codesense.models import (
    USER,
    FunctionCall,
    ModelRequest,
    ModelResponse,
    ToolResultPart,
    Turn,
)
from codesense.prompts import (
    CHAT_SYSTEM_PROMPT,
    COMPLETION_PHRASES,
    CONFIRMATION_REQUIRED,
    CONTINUE_INSTRUCTION,
    DECLINE_INSTRUCTION,
    PROCEED_INSTRUCTION,
    REVIEW_SEED,
    REVIEW_SYSTEM_PROMPT,
    STOPPED_MESSAGE,
    working_directory_message,
)
from codesense.tools.registry import ToolRegistry

logger = get_logger("agent")

UNRECOVERABLE_STATE = (
    "Conversation state could not be recovered. Please start a new conversation."
)


class LoopState(str, Enum):
    """Where a session currently is within a run."""

    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    EMITTING_TEXT = "emitting_text"
    DONE = "done"
    ERROR = "error"


class OperatingMode(str, Enum):
    """Whether destructive tools may run."""

    DRY_RUN = "dry-run"
    APPLY_FIX = "apply-fix"


@dataclass
class AgentResult:
    """Outcome of one run."""

    finish_reason: str  # "complete", "max_turns", "aborted", "declined"
    text: str = ""
    turns: int = 0  # provider cycles used


class AgentSession:
    """
    One conversation with a model that can operate on a project.

    Runs on the same session are serialized; separate sessions share no
    mutable state and may run concurrently.
    """

    def __init__(
        self,
        adapter: LLMAdapter,
        tools: ToolRegistry,
        config: AgentConfig | None = None,
        events: EventBus | None = None,
        session_id: str | None = None,
    ) -> None:
        self.adapter = adapter
        self.tools = tools
        self.config = config or AgentConfig()
        self.events = events or EventBus()
        self.session_id = session_id or uuid.uuid4().hex
        self.mode = OperatingMode.APPLY_FIX
        self.state = LoopState.DONE
        self._history: list[Turn] = []
        self._abort_event: asyncio.Event | None = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def history(self) -> list[Turn]:
        """A copy of the current turn history."""
        return list(self._history)

    @property
    def is_running(self) -> bool:
        return self._abort_event is not None

    @property
    def is_aborted(self) -> bool:
        """Check if the current run has been asked to stop."""
        return self._abort_event is not None and self._abort_event.is_set()

    def abort(self) -> None:
        """
        Stop the current run.

        Only the in-flight provider call is cancelled; a tool that is
        already executing finishes first. Does nothing when idle.
        """
        if self._abort_event is None:
            return
        logger.info("Abort requested for session %s", self.session_id)
        self._abort_event.set()

    def reset(self) -> None:
        """Abandon the conversation history."""
        self._history = []
        self.mode = OperatingMode.APPLY_FIX
        logger.debug("Session %s reset", self.session_id)

    async def run_message(
        self,
        user_text: str,
        working_directory: str,
        callbacks: AgentCallbacks | None = None,
    ) -> AgentResult:
        """
        Chat variant: send one user message and run until the model replies.

        Tools run unrestricted; any non-empty model text ends the run.
        ``callbacks`` only receive the events of this run, even when other
        runs are queued on the session.
        """
        async with self._lock:
            self._drop_unanswered_message()
            seed = Turn.user(working_directory_message(user_text, working_directory))
            self._history.append(seed)
            self.mode = OperatingMode.APPLY_FIX
            system_prompt = self.config.system_prompt or CHAT_SYSTEM_PROMPT
            with self._bound(callbacks):
                return await self._run(seed, system_prompt, gate=None)

    async def run_review(
        self,
        directory: str,
        gate: InteractionGate,
        callbacks: AgentCallbacks | None = None,
    ) -> AgentResult:
        """
        Review variant: analyze ``directory`` and propose fixes.

        Starts from a fresh history in dry-run mode. Question-like model
        text is routed through ``gate``; a "yes" switches to apply-fix
        mode, a "no" ends the run.
        """
        async with self._lock:
            seed = Turn.user(REVIEW_SEED.format(directory=directory))
            self._history = [seed]
            self.mode = OperatingMode.DRY_RUN
            system_prompt = self.config.system_prompt or REVIEW_SYSTEM_PROMPT
            with self._bound(callbacks):
                return await self._run(seed, system_prompt, gate=gate)

    @contextmanager
    def _bound(self, callbacks: AgentCallbacks | None) -> Iterator[None]:
        """Subscribe ``callbacks`` to this session's bus for one run."""
        if callbacks is None:
            yield
            return
        unbind = callbacks.bind(self.events, source=f"run:{self.session_id}")
        try:
            yield
        finally:
            unbind()

    def _drop_unanswered_message(self) -> None:
        """Remove a user message the model never answered (aborted or failed run)."""
        last = self._history[-1] if self._history else None
        if last is not None and last.role == USER and not last.has_tool_results:
            logger.info("Dropping unanswered message from session %s", self.session_id)
            self._history.pop()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def _run(
        self, seed: Turn, system_prompt: str, gate: InteractionGate | None
    ) -> AgentResult:
        self._abort_event = asyncio.Event()
        cycles = 0
        state_retries = 0

        try:
            try:
                while cycles < self.config.max_turns:
                    self._check_abort()

                    request = self._prepare_request(seed, system_prompt)
                    self.state = LoopState.AWAITING_MODEL
                    try:
                        response = await self._generate(request)
                    except ConversationStateError as e:
                        state_retries += 1
                        if state_retries > self.config.max_state_retries:
                            self._history = []
                            logger.error("Conversation state unrecoverable: %s", e)
                            raise ConversationStateError(UNRECOVERABLE_STATE) from e
                        logger.warning(
                            "Provider rejected conversation state (%s), reseeding (%d/%d)",
                            e,
                            state_retries,
                            self.config.max_state_retries,
                        )
                        self._history = [seed]
                        continue

                    state_retries = 0
                    cycles += 1

                    if response.function_calls:
                        self.state = LoopState.DISPATCHING_TOOLS
                        await self._dispatch(response.function_calls, cycles)
                        continue

                    self.state = LoopState.EMITTING_TEXT
                    text = response.text.strip()
                    if not text:
                        return await self._finish("complete", "", cycles)

                    self._history.append(Turn.model(text))
                    await self.events.emit(TEXT, TextEvent(text=text, turn=cycles))

                    if gate is None:
                        return await self._finish("complete", text, cycles)

                    reason = await self._review_step(text, gate)
                    if reason is not None:
                        return await self._finish(reason, text, cycles)

                logger.warning("Max turns (%d) reached", self.config.max_turns)
                return await self._finish("max_turns", "", cycles)

            except AgentAbortedError:
                logger.info("Session %s aborted", self.session_id)
                return await self._finish("aborted", STOPPED_MESSAGE, cycles)

        except Exception as e:
            self.state = LoopState.ERROR
            kind = getattr(e, "kind", "internal")
            await self.events.emit(ERROR, ErrorEvent(kind=kind, detail=str(e)))
            raise

        finally:
            self._abort_event = None

    def _prepare_request(self, seed: Turn, system_prompt: str) -> ModelRequest:
        """Trim and sanitize the history, reseeding it if nothing survives."""
        history = trim_history(self._history, seed, self.config.max_history)
        history = sanitize_history(history)
        if not history:
            logger.info("History empty after sanitizing, reseeding")
            history = [seed]
        self._history = history
        return ModelRequest(
            system_instruction=system_prompt,
            history=list(history),
            tools=self.tools.list_tools(),
        )

    async def _generate(self, request: ModelRequest) -> ModelResponse:
        """Run the provider call, racing it against the abort signal."""
        assert self._abort_event is not None
        call = asyncio.ensure_future(self.adapter.generate(request))
        aborted = asyncio.ensure_future(self._abort_event.wait())
        try:
            await asyncio.wait({call, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            aborted.cancel()
            if not call.done():
                call.cancel()
                await asyncio.gather(call, return_exceptions=True)

        self._check_abort()
        return call.result()

    async def _dispatch(self, calls: list[FunctionCall], turn: int) -> None:
        """Execute every call of one model reply, in order, as one batch."""
        self._history.append(Turn.calls(calls))

        results: list[ToolResultPart] = []
        for call in calls:
            await self.events.emit(
                TOOL_CALL, ToolCallEvent(name=call.name, args=dict(call.args), turn=turn)
            )
            response = await self._invoke_tool(call)
            results.append(ToolResultPart(name=call.name, response=response))
            await self.events.emit(
                TOOL_RESULT, ToolResultEvent(name=call.name, response=response, turn=turn)
            )

        self._history.append(Turn.results(results))

    async def _invoke_tool(self, call: FunctionCall) -> dict:
        if self.mode is OperatingMode.DRY_RUN and self._is_destructive(call.name):
            logger.info("Blocked %s in dry-run mode", call.name)
            return {"error": CONFIRMATION_REQUIRED}

        if self.tools.get(call.name) is None:
            logger.warning("Model called unknown tool: %s", call.name)
            return {"error": f"Unknown tool: {call.name}"}

        logger.debug("Executing tool %s", call.name)
        try:
            payload = await self.tools.execute(call.name, call.args)
        except Exception as e:
            logger.warning("Tool %s raised: %s", call.name, e)
            return {"error": str(e) or type(e).__name__}
        return {"result": payload}

    def _is_destructive(self, name: str) -> bool:
        """Configured names plus any registered tool tagged destructive."""
        return name in self.config.destructive_tools or name in self.tools.destructive_names()

    async def _review_step(self, text: str, gate: InteractionGate) -> str | None:
        """Decide how a review run continues after model text. None = keep going."""
        if gate.is_question(text):
            approved = await gate.confirm(text)
            self._check_abort()
            if approved:
                self.mode = OperatingMode.APPLY_FIX
                self._history.append(Turn.user(PROCEED_INSTRUCTION))
                return None
            self._history.append(Turn.user(DECLINE_INSTRUCTION))
            return "declined"

        lowered = text.lower()
        if self.mode is OperatingMode.APPLY_FIX and any(p in lowered for p in COMPLETION_PHRASES):
            return "complete"

        self._history.append(Turn.user(CONTINUE_INSTRUCTION))
        return None

    async def _finish(self, reason: str, text: str, cycles: int) -> AgentResult:
        self.state = LoopState.DONE
        await self.events.emit(DONE, DoneEvent(reason=reason, message=text))
        return AgentResult(finish_reason=reason, text=text, turns=cycles)

    def _check_abort(self) -> None:
        """Raise AgentAbortedError if the abort signal is set."""
        if self._abort_event is not None and self._abort_event.is_set():
            raise AgentAbortedError("Agent operation aborted")
