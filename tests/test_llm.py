"""Tests for the Copilot SDK backend, with the SDK session faked out."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from sbom_inspector.llm import CopilotBackend


def event(etype: str, content: str = "") -> SimpleNamespace:
    return SimpleNamespace(
        type=SimpleNamespace(value=etype),
        data=SimpleNamespace(content=content) if content else None,
    )


class FakeSession:
    def __init__(self, events: list[SimpleNamespace]) -> None:
        self._events = events
        self._handler = None
        self.sent: list[dict] = []
        self.unsubscribed = False
        self.destroy = AsyncMock()

    def on(self, handler):
        self._handler = handler

        def unsubscribe():
            self.unsubscribed = True

        return unsubscribe

    async def send(self, message: dict) -> None:
        self.sent.append(message)
        for e in self._events:
            self._handler(e)


class BroadcastSession:
    """Delivers each reply to every subscribed handler, like a shared SDK session."""

    def __init__(self, delays: dict[str, float]) -> None:
        self._handlers: list = []
        self._delays = delays
        self._pending: list[asyncio.Task] = []

    def on(self, handler):
        self._handlers.append(handler)
        return lambda: self._handlers.remove(handler)

    async def send(self, message: dict) -> None:
        prompt = message["prompt"].split("\n", 1)[0]

        async def reply() -> None:
            await asyncio.sleep(self._delays.get(prompt, 0))
            for handler in list(self._handlers):
                handler(event("assistant.message", f"reply-to:{prompt}"))

        self._pending.append(asyncio.create_task(reply()))


class TestGenerate:
    @pytest.mark.asyncio
    async def test_collects_reply(self):
        backend = CopilotBackend(default_model="gpt-4.1")
        session = FakeSession([event("assistant.message", '  {"dependencies": []} ')])
        backend._sessions["gpt-4.1"] = session

        reply = await backend.generate("Find deps", {"type": "object"})

        assert reply == '{"dependencies": []}'
        assert session.unsubscribed
        prompt = session.sent[0]["prompt"]
        assert prompt.startswith("Find deps")
        assert json.dumps({"type": "object"}) in prompt

    @pytest.mark.asyncio
    async def test_idle_without_message(self):
        backend = CopilotBackend()
        backend._sessions["gpt-4.1"] = FakeSession([event("session.idle")])
        assert await backend.generate("p", {}) == ""

    @pytest.mark.asyncio
    async def test_model_selects_session(self):
        backend = CopilotBackend(default_model="gpt-4.1")
        fast = FakeSession([event("assistant.message", "fast")])
        backend._sessions["gpt-4.1"] = FakeSession([event("assistant.message", "slow")])
        backend._sessions["gpt-4.1-mini"] = fast
        assert await backend.generate("p", {}, model="gpt-4.1-mini") == "fast"
        assert fast.sent

    @pytest.mark.asyncio
    async def test_session_created_once_per_model(self):
        backend = CopilotBackend()
        client = MagicMock()
        client.create_session = AsyncMock(
            side_effect=lambda cfg: FakeSession([event("assistant.message", cfg["model"])])
        )
        backend._client = client

        assert await backend.generate("p", {}, model="m1") == "m1"
        assert await backend.generate("p", {}, model="m1") == "m1"
        assert client.create_session.await_count == 1
        config = client.create_session.await_args.args[0]
        assert config["model"] == "m1"
        assert "on_pre_tool_use" in config["hooks"]

    @pytest.mark.asyncio
    async def test_tool_use_denied(self):
        backend = CopilotBackend()
        client = MagicMock()
        client.create_session = AsyncMock(return_value=FakeSession([]))
        backend._client = client
        await backend._session_for("m1")
        hook = client.create_session.await_args.args[0]["hooks"]["on_pre_tool_use"]
        assert await hook({"toolName": "shell"}, None) == {"permissionDecision": "deny"}


class TestClose:
    @pytest.mark.asyncio
    async def test_close_tears_down(self):
        backend = CopilotBackend()
        session = FakeSession([])
        client = MagicMock()
        client.stop = AsyncMock()
        backend._sessions["gpt-4.1"] = session
        backend._client = client

        await backend.close()

        session.destroy.assert_awaited_once()
        client.stop.assert_awaited_once()
        assert backend._sessions == {}
        assert backend._client is None

    @pytest.mark.asyncio
    async def test_close_tolerates_errors(self):
        backend = CopilotBackend()
        session = FakeSession([])
        session.destroy = AsyncMock(side_effect=RuntimeError("gone"))
        client = MagicMock()
        client.stop = AsyncMock(side_effect=RuntimeError("gone"))
        backend._sessions["gpt-4.1"] = session
        backend._client = client

        await backend.close()
        assert backend._client is None

    @pytest.mark.asyncio
    async def test_close_without_start(self):
        await CopilotBackend().close()


class TestConcurrentGenerate:
    @pytest.mark.asyncio
    async def test_overlapping_calls_get_their_own_reply(self):
        backend = CopilotBackend(default_model="gpt-4.1")
        backend._sessions["gpt-4.1"] = BroadcastSession({"analyze A": 0.05})

        a, b = await asyncio.gather(
            backend.generate("analyze A", {}),
            backend.generate("analyze B", {}),
        )

        assert a == "reply-to:analyze A"
        assert b == "reply-to:analyze B"

    @pytest.mark.asyncio
    async def test_different_models_do_not_wait_on_each_other(self):
        backend = CopilotBackend()
        backend._sessions["slow"] = BroadcastSession({"p": 0.05})
        backend._sessions["fast"] = BroadcastSession({})

        a, b = await asyncio.gather(
            backend.generate("p", {}, model="slow"),
            backend.generate("q", {}, model="fast"),
        )

        assert (a, b) == ("reply-to:p", "reply-to:q")
