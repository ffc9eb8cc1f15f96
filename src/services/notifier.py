"""
Turn notifications to the opponent.

Best effort only: a notification that cannot be delivered is logged and otherwise ignored,
it never affects the move that triggered it.
"""

import logging
from typing import Optional, Protocol

import httpx

from src.core.models import PlayerId

log = logging.getLogger(__name__)


class TurnNotifier(Protocol):
    def send_turn_notification(self, opponent_id: PlayerId) -> None:
        """Tell the opponent it is their move. Must not raise."""
        ...


class NullNotifier:
    """Used when no notification endpoint is configured."""

    def send_turn_notification(self, opponent_id: PlayerId) -> None:
        log.debug("Turn notifications disabled, not notifying %s", opponent_id)


class HttpTurnNotifier:
    """Calls a (cloud) function endpoint which takes care of the actual push delivery."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url
        self.client = client if client is not None else httpx.Client(timeout=timeout)

    def send_turn_notification(self, opponent_id: PlayerId) -> None:
        log.info("Notifying opponent %s", opponent_id)
        try:
            response = self.client.post(self.url, json={"data": {"opponentId": opponent_id}})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error(
                "Turn notification for %s rejected: HTTP %d %s",
                opponent_id,
                e.response.status_code,
                e.response.text,
            )
        except httpx.HTTPError as e:
            log.error("Turn notification for %s failed: %s", opponent_id, e)

    def close(self) -> None:
        self.client.close()
