"""Remote bot decision provider over a signed HTTP callback."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time

import httpx
from pydantic import ValidationError

from fightclub.agents.base import Decision, GameView, WireModel
from fightclub.core.combat import TurnAction, parse_action_token
from fightclub.errors import DecisionError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Signature"
MATCH_ID_HEADER = "X-Match-Id"


def sign_payload(body: bytes | str, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature of a request body."""
    if isinstance(body, str):
        body = body.encode()
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_signature(body: bytes | str, signature: str | None, secret: str) -> bool:
    """Check a ``sha256=<hex>`` signature in constant time."""
    if not signature:
        return False
    return hmac.compare_digest(sign_payload(body, secret), signature)


class WebhookRequest(WireModel):
    """Body POSTed to a bot's callback URL."""

    match_id: str
    turn: int
    game_state: GameView
    timeout_ms: int


class WebhookReply(WireModel):
    """What a bot answers with."""

    action: str = "PASS"
    thinking: str | None = ""
    trash_talk: str | None = ""


class WebhookProvider:
    """Ask a registered bot for its action via its callback URL.

    Requests carry an HMAC signature over the exact body bytes. Any transport
    failure, non-2xx status or malformed reply raises DecisionError.
    """

    source = "webhook"

    def __init__(self, callback_url: str, secret: str, client: httpx.AsyncClient | None = None):
        self.callback_url = callback_url
        self.secret = secret
        self.client = client

    async def decide(self, view: GameView, timeout: float) -> Decision:
        request = WebhookRequest(
            match_id=view.match_id,
            turn=view.turn,
            game_state=view,
            timeout_ms=int(timeout * 1000),
        )
        body = json.dumps(request.to_wire(), separators=(",", ":")).encode()
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_payload(body, self.secret),
            MATCH_ID_HEADER: view.match_id,
        }

        started = time.perf_counter()
        try:
            if self.client is not None:
                response = await self.client.post(
                    self.callback_url, content=body, headers=headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(self.callback_url, content=body, headers=headers)
            response.raise_for_status()
            reply = WebhookReply.model_validate(response.json())
        except httpx.HTTPError as e:
            raise DecisionError(f"Callback {self.callback_url} failed: {e}") from e
        except (ValueError, ValidationError) as e:
            raise DecisionError(f"Callback {self.callback_url} sent a malformed reply: {e}") from e
        elapsed_ms = (time.perf_counter() - started) * 1000

        action = parse_action_token(reply.action)
        if action is None:
            logger.debug("Unknown action token %r from %s, passing", reply.action, self.callback_url)
            action = TurnAction.pass_turn()

        return Decision(
            action=action,
            thinking=reply.thinking or "",
            trash_talk=reply.trash_talk or "",
            source=self.source,
            response_time_ms=elapsed_ms,
        )
