"""
Session pool: the inbound boundary for hosts.

A host (editor panel, CLI, web handler) submits messages by session id.
The pool builds sessions lazily, wires host callbacks to the session's
event bus, and keeps a small transcript per conversation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from codesense.adapters.registry import AdapterRegistry, default_registry
from codesense.agent import AgentResult, AgentSession
from codesense.config import AgentConfig
from codesense.errors import AgentError, ConfigurationError, ConversationStateError
from codesense.events import ERROR, AgentCallbacks, ErrorEvent, EventBus
from codesense.gate import AskYesNo, InteractionGate
from codesense.logging import get_logger
from codesense.models import ConversationRecord
from codesense.tools import ModifiedNotifier, create_project_tools

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = get_logger("sessions")

# Transcripts kept; the oldest are dropped first
MAX_RECORDS = 50


class SessionPool:
    """
    Independent agent sessions keyed by conversation id.

    Exactly one terminal callback (``on_done`` or ``on_error``) fires for
    every ``submit``/``review`` call, including configuration failures
    that happen before a session exists.
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        adapter_registry: AdapterRegistry | None = None,
        notify_modified: ModifiedNotifier | None = None,
    ) -> None:
        self.config = config or AgentConfig.from_env()
        self.adapter_registry = adapter_registry or default_registry()
        self.notify_modified = notify_modified
        self._sessions: dict[str, AgentSession] = {}
        self._directories: dict[str, str] = {}
        self._records: dict[str, ConversationRecord] = {}

    def _build_session(self, session_id: str, working_directory: str) -> AgentSession:
        adapter = self.adapter_registry.create(self.config.provider, self.config)
        tools = create_project_tools(
            working_directory,
            notify_modified=self.notify_modified,
            command_timeout=self.config.command_timeout,
        )
        logger.info("Created session %s (%s, %s)", session_id, adapter.name, adapter.model)
        return AgentSession(adapter, tools, self.config, session_id=session_id)

    def _session_for(self, session_id: str, working_directory: str) -> AgentSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = self._build_session(session_id, working_directory)
            self._sessions[session_id] = session
        elif self._directories.get(session_id) != working_directory:
            logger.debug("Session %s moved to %s, rebuilding tools", session_id, working_directory)
            session.tools = create_project_tools(
                working_directory,
                notify_modified=self.notify_modified,
                command_timeout=self.config.command_timeout,
            )
        self._directories[session_id] = working_directory
        return session

    async def submit(
        self,
        session_id: str,
        user_text: str,
        working_directory: str,
        callbacks: AgentCallbacks | None = None,
    ) -> AgentResult | None:
        """
        Run one chat message on the session ``session_id``.

        Returns the run result, or None if the run failed (the failure has
        already been reported through ``callbacks.on_error``).
        """
        callbacks = callbacks or AgentCallbacks()
        try:
            session = self._session_for(session_id, working_directory)
        except ConfigurationError as e:
            logger.error("Cannot start session %s: %s", session_id, e)
            await _report_error(callbacks, e)
            return None

        record = self.record(session_id)
        record.add_message(user_text, "user")

        try:
            result = await session.run_message(user_text, working_directory, callbacks)
        except AgentError as e:
            logger.warning("Session %s failed (%s): %s", session_id, e.kind, e)
            if isinstance(e, ConversationStateError):
                self.drop(session_id)
            return None

        if result.text:
            record.add_message(result.text, "ai")
        return result

    async def review(
        self,
        directory: str,
        ask_yes_no: AskYesNo,
        callbacks: AgentCallbacks | None = None,
        session_id: str | None = None,
    ) -> AgentResult | None:
        """
        Run the single-shot review variant on a throwaway session.

        The session is reachable through ``cancel(session_id)`` while it
        runs and is forgotten afterwards.
        """
        callbacks = callbacks or AgentCallbacks()
        session_id = session_id or f"review:{directory}"
        try:
            session = self._build_session(session_id, directory)
        except ConfigurationError as e:
            logger.error("Cannot start review of %s: %s", directory, e)
            await _report_error(callbacks, e)
            return None

        self._sessions[session_id] = session
        try:
            return await session.run_review(directory, InteractionGate(ask_yes_no), callbacks)
        except AgentError as e:
            logger.warning("Review of %s failed (%s): %s", directory, e.kind, e)
            return None
        finally:
            self._sessions.pop(session_id, None)

    def cancel(self, session_id: str) -> bool:
        """Abort the in-flight run of ``session_id``. Returns False if idle or unknown."""
        session = self._sessions.get(session_id)
        if session is None or not session.is_running:
            return False
        session.abort()
        return True

    def reset(self, session_id: str) -> None:
        """Abandon the history of ``session_id`` and start a fresh transcript."""
        session = self._sessions.get(session_id)
        if session is not None:
            session.reset()
        self._records.pop(session_id, None)

    def drop(self, session_id: str) -> None:
        """Forget a session entirely; the next submit builds a new one."""
        self._sessions.pop(session_id, None)
        self._directories.pop(session_id, None)
        logger.info("Dropped session %s", session_id)

    def get(self, session_id: str) -> AgentSession | None:
        return self._sessions.get(session_id)

    def record(self, session_id: str) -> ConversationRecord:
        """The transcript for ``session_id``, created on first use."""
        record = self._records.get(session_id)
        if record is None:
            record = ConversationRecord(id=session_id)
            self._records[session_id] = record
            self._prune_records()
        return record

    def records(self) -> list[ConversationRecord]:
        """Transcripts, most recently updated first."""
        return sorted(self._records.values(), key=lambda r: r.timestamp, reverse=True)

    def _prune_records(self) -> None:
        if len(self._records) <= MAX_RECORDS:
            return
        for stale in self.records()[MAX_RECORDS:]:
            del self._records[stale.id]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions


async def _report_error(callbacks: AgentCallbacks, error: AgentError) -> None:
    """Deliver an error that happened before any session bus existed."""
    bus = EventBus()
    unbind = callbacks.bind(bus, source="pool")
    try:
        await bus.emit(ERROR, ErrorEvent(kind=error.kind, detail=str(error)))
    finally:
        unbind()
