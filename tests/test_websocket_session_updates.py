from __future__ import annotations

import pytest

from soloquiz.api.models import GameState, Stage
from soloquiz.questions.registry import QuestionSet
from soloquiz.stage_machine import StageMachine
from soloquiz.websocket_hub import SessionViewHub


class _FakeWebSocket:
    def __init__(self, *, closed: bool = False) -> None:
        self.accepted = False
        self.closed = closed
        self.sent: list[dict[str, object]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, payload: dict[str, object]) -> None:
        if self.closed and self.accepted and self.sent:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        self.sent.append(payload)


def test_ws_gets_snapshot_then_updated_views(client_and_redis) -> None:
    client, _ = client_and_redis
    client.post("/session/s1/player", json={"name": "Alex"})

    with client.websocket_connect("/ws/session/s1") as ws:
        snapshot = ws.receive_json()
        assert snapshot["type"] == "session_snapshot"
        assert snapshot["session_id"] == "s1"
        assert snapshot["view"]["stage"] == "category"
        assert snapshot["view"]["player"]["name"] == "Alex"
        assert snapshot["view"]["question"]["category"] == "Warm-up"

        client.post("/session/s1/next")
        msg = ws.receive_json()
        assert msg["type"] == "session_updated"
        assert msg["action"] == "next"
        assert msg["view"]["stage"] == "question"
        assert msg["view"]["actions"]["arm_x2"]["enabled"] is False

        client.post("/session/s1/next")
        client.post("/session/s1/outcome", json={"outcome": "correct"})
        ws.receive_json()
        msg = ws.receive_json()
        assert msg["action"] == "award_outcome"
        assert (msg["view"]["index"], msg["view"]["stage"]) == (1, "category")
        assert msg["view"]["player"]["score"] == 1
        assert msg["view"]["results"][0]["delta"] == 1


def test_blocked_actions_are_not_published(client_and_redis) -> None:
    client, _ = client_and_redis

    with client.websocket_connect("/ws/session/s1") as ws:
        ws.receive_json()
        assert client.post("/session/s1/previous").json()["applied"] is False
        client.post("/session/s1/next")

        msg = ws.receive_json()
        assert msg["action"] == "next"


@pytest.mark.asyncio
async def test_hub_publishes_views_per_session_and_drops_closed_renderers(questions: QuestionSet) -> None:
    hub = SessionViewHub()
    machine = StageMachine(state=GameState(), questions=questions)
    live, closed, other = _FakeWebSocket(), _FakeWebSocket(closed=True), _FakeWebSocket()

    await hub.subscribe("s1", live, current=machine.view(session_id="s1"))
    await hub.subscribe("s1", closed, current=machine.view(session_id="s1"))
    await hub.subscribe("s2", other, current=machine.view(session_id="s2"))
    assert live.accepted and closed.accepted
    assert live.sent[0]["type"] == "session_snapshot"
    assert hub.watcher_count("s1") == 2

    machine.next()
    delivered = await hub.publish("s1", action="next", view=machine.view(session_id="s1"))

    assert delivered == 1
    assert live.sent[-1]["view"]["stage"] == Stage.question.value
    assert len(other.sent) == 1
    assert hub.watcher_count("s1") == 1

    await hub.unsubscribe("s1", live)
    assert hub.watcher_count("s1") == 0
    assert await hub.publish("s1", action="next", view=machine.view()) == 0
