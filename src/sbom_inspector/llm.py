"""Reasoning-service backends.

The extraction layer only needs "send a prompt plus a JSON schema, get text
back". ``LLMBackend`` is that capability; ``CopilotBackend`` implements it
on top of the Copilot SDK.
"""

import asyncio
import json
import logging
import tempfile
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = (
    "You are a software supply-chain analysis assistant. "
    "You ONLY analyze data provided to you in the prompt. "
    "You NEVER use tools, browse the filesystem, run commands, or "
    "access external resources. You respond ONLY with a single JSON value "
    "matching the requested schema, without markdown fences."
)


class LLMBackend(Protocol):
    async def generate(
        self, prompt: str, schema: dict, model: Optional[str] = None
    ) -> str: ...

    async def close(self) -> None: ...


class CopilotBackend:
    """Copilot SDK sessions, one per model, started lazily."""

    def __init__(self, default_model: str = "gpt-4.1") -> None:
        self.default_model = default_model
        self._client: object | None = None
        self._sessions: dict[str, object] = {}
        # A session broadcasts events to every subscriber, so one request per
        # session may be in flight at a time.
        self._locks: dict[str, asyncio.Lock] = {}

    async def _ensure_client(self) -> object:
        if self._client is None:
            from copilot import CopilotClient  # type: ignore[import-untyped]

            # Temp CWD so the Copilot CLI never writes state into the workspace.
            self._client = CopilotClient({"cwd": tempfile.mkdtemp(prefix="sbominspect-copilot-")})
            await self._client.start()  # type: ignore[attr-defined]
        return self._client

    async def _session_for(self, model: str) -> object:
        if model in self._sessions:
            return self._sessions[model]
        client = await self._ensure_client()

        async def deny_all_tools(input: dict, invocation: object) -> dict:
            return {"permissionDecision": "deny"}

        session = await client.create_session(  # type: ignore[attr-defined]
            {
                "model": model,
                "infinite_sessions": {"enabled": False},
                "system_message": {"content": SYSTEM_MESSAGE},
                "hooks": {"on_pre_tool_use": deny_all_tools},
            }
        )
        self._sessions[model] = session
        return session

    async def generate(
        self, prompt: str, schema: dict, model: Optional[str] = None
    ) -> str:
        """Send one prompt (with the schema appended) and collect the reply text."""
        model = model or self.default_model
        lock = self._locks.setdefault(model, asyncio.Lock())
        async with lock:
            return await self._exchange(await self._session_for(model), prompt, schema)

    async def _exchange(self, session: object, prompt: str, schema: dict) -> str:
        done = asyncio.Event()
        parts: list[str] = []

        def _on_event(event: object) -> None:
            etype = getattr(getattr(event, "type", None), "value", "")
            data = getattr(event, "data", None)
            if etype == "assistant.message" and data:
                content = getattr(data, "content", "") or ""
                if content:
                    parts.append(content)
                done.set()
            elif etype == "session.idle":
                done.set()

        full_prompt = (
            f"{prompt}\n\nThe response MUST conform to this JSON schema:\n"
            f"{json.dumps(schema)}"
        )
        unsubscribe = session.on(_on_event)  # type: ignore[attr-defined]
        try:
            await session.send({"prompt": full_prompt})  # type: ignore[attr-defined]
            await done.wait()
        finally:
            if callable(unsubscribe):
                unsubscribe()
        return "".join(parts).strip()

    async def close(self) -> None:
        for model, session in self._sessions.items():
            try:
                await session.destroy()  # type: ignore[attr-defined]
            except Exception as e:
                logger.debug("Failed to destroy Copilot session for %s: %s", model, e)
        self._sessions.clear()
        if self._client is not None:
            try:
                await self._client.stop()  # type: ignore[attr-defined]
            except Exception as e:
                logger.debug("Failed to stop Copilot client: %s", e)
            self._client = None
