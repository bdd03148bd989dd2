"""Decision providers that choose each side's action."""

from fightclub.agents.base import Decision, DecisionProvider, GameView, build_game_view
from fightclub.agents.heuristic import HeuristicProvider
from fightclub.agents.llm import LLMProvider, parse_llm_reply
from fightclub.agents.webhook import WebhookProvider, sign_payload, verify_signature

__all__ = [
    "Decision",
    "DecisionProvider",
    "GameView",
    "build_game_view",
    "HeuristicProvider",
    "WebhookProvider",
    "LLMProvider",
    "parse_llm_reply",
    "sign_payload",
    "verify_signature",
]
