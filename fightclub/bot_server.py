"""Reference bot: the callback contract implemented from the bot's side.

Run it with uvicorn behind any URL and register that URL as a webhook
participant. Out of the box it answers with the heuristic provider.
"""

from typing import Annotated, Any

from fastapi import FastAPI, Header, HTTPException, Request, status
from pydantic import ValidationError

from fightclub.agents.base import DecisionProvider
from fightclub.agents.heuristic import HeuristicProvider
from fightclub.agents.webhook import WebhookReply, WebhookRequest, verify_signature


def create_bot_app(secret: str, provider: DecisionProvider | None = None) -> FastAPI:
    """Build a FastAPI app that answers decision callbacks signed with ``secret``."""
    app = FastAPI(title="Fight Club Bot")
    decider = provider or HeuristicProvider()

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @app.post("/decide")
    async def decide(
        request: Request,
        x_signature: Annotated[str | None, Header()] = None,
    ) -> dict[str, Any]:
        body = await request.body()
        if not verify_signature(body, x_signature, secret):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

        try:
            payload = WebhookRequest.model_validate_json(body)
        except ValidationError as e:
            raise HTTPException(
                status_code=422,
                detail=e.errors(include_url=False, include_context=False, include_input=False),
            ) from e

        decision = await decider.decide(payload.game_state, payload.timeout_ms / 1000)
        reply = WebhookReply(
            action=decision.action.to_token(),
            thinking=decision.thinking,
            trash_talk=decision.trash_talk,
        )
        return reply.to_wire()

    return app
