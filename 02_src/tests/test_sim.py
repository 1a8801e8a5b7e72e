"""Tests for the SIM traffic generator."""

import json

import httpx

from sim import Sim
from sim.sim import SCENARIO_CHATS


class TestSim:
    """Tests for Sim."""

    def test_steps_play_add_dialog(self):
        """Test that each chat's script is /add, name, reason, amount, /debts."""
        sim = Sim()
        steps = sim._steps(SCENARIO_CHATS[0])

        assert steps[0] == {"chat_id": 1001, "command": "/add"}
        assert [s.get("text") for s in steps[1:4]] == ["Alice", "lunch", "12.50"]
        assert steps[-1]["command"] == "/debts"

    async def test_send_event_posts_to_api(self):
        """Test that events are posted to the event endpoint."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"renders": [{"text": "ok"}]})

        sim = Sim(api_url="http://test")
        sim._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        await sim._send_event({"chat_id": 1, "command": "/add"})
        await sim._client.aclose()

        assert seen == [("/api/events", {"chat_id": 1, "command": "/add"})]

    async def test_start_and_stop(self):
        """Test that stop cancels the background scenario."""
        sim = Sim(api_url="http://127.0.0.1:9")

        await sim.start()
        assert sim.running
        await sim.stop()

        assert not sim.running
        assert sim._task is None
