"""SIM implementation - scripted debt scenario for manual testing."""

import asyncio
import random
from typing import Any, Protocol

import httpx

from debt_tracker.logging_config import get_logger

logger = get_logger(__name__)

# Each virtual chat adds one debt through the full dialogue, then opens /debts
SCENARIO_CHATS = [
    {"chat_id": 1001, "name": "Alice", "reason": "lunch", "amount": "12.50"},
    {"chat_id": 1002, "name": "Bob", "reason": "concert tickets", "amount": "80"},
    {"chat_id": 1003, "name": "Charlie", "reason": "taxi", "amount": "7,30"},
]


class ISim(Protocol):
    """Generate test traffic against the event endpoint."""

    async def start(self) -> None:
        """Start the scripted scenario."""
        ...

    async def stop(self) -> None:
        """Stop the scenario."""
        ...


class Sim:
    """SIM that plays the add-debt dialogue for a few virtual chats."""

    def __init__(self, api_url: str = "http://localhost:8000"):
        self._api_url = api_url
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scripted scenario in the background."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient()
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop the scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    def _steps(self, chat: dict[str, Any]) -> list[dict[str, Any]]:
        chat_id = chat["chat_id"]
        return [
            {"chat_id": chat_id, "command": "/add"},
            {"chat_id": chat_id, "text": chat["name"]},
            {"chat_id": chat_id, "text": chat["reason"]},
            {"chat_id": chat_id, "text": chat["amount"]},
            {"chat_id": chat_id, "command": "/debts"},
        ]

    async def _run_scenario(self) -> None:
        """Interleave the chats' dialogues step by step."""
        scripts = [self._steps(chat) for chat in SCENARIO_CHATS]
        logger.info("SIM started for %d chats", len(scripts))

        try:
            for round_idx in range(max(len(s) for s in scripts)):
                if not self._running:
                    break

                for script in scripts:
                    if not self._running:
                        break
                    if round_idx < len(script):
                        await self._send_event(script[round_idx])
                        # Random delay between events (0.5-1.5 seconds)
                        await asyncio.sleep(random.uniform(0.5, 1.5))

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False
            logger.info("SIM completed")

    async def _send_event(self, body: dict[str, Any]) -> None:
        """Post one event via the HTTP API."""
        if not self._client:
            return

        try:
            response = await self._client.post(
                f"{self._api_url}/api/events",
                json=body,
                timeout=10.0,
            )

            if response.status_code == 200:
                renders = response.json().get("renders", [])
                logger.info("SIM: %s", body, extra={"chat_id": body["chat_id"]})
                for render in renders:
                    logger.info("SIM: Render: %s", render.get("text", "N/A"))
            else:
                logger.error("SIM: Error sending event: %s", response.status_code)

        except httpx.HTTPError as e:
            logger.error("SIM: Failed to send event: %s", e)
