"""Language-model decision provider (OpenAI-compatible chat completions)."""

from __future__ import annotations

import logging
import re
import time
from typing import Callable

import httpx

from fightclub.agents.base import Decision, GameView
from fightclub.core.combat import TurnAction, parse_action_token
from fightclub.errors import DecisionError
from fightclub.utils.config import config

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a fighter coach in an AI fight club. Follow the response format exactly."

_TOKEN_SEARCH = re.compile(r"\b(ATTACK[_ ]?\d+|RETREAT[_ ]?\d+|PASS)\b", re.IGNORECASE)


def _hp_bar(current: int, maximum: int, width: int = 10) -> str:
    filled = round(current / maximum * width) if maximum else 0
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def default_prompt(view: GameView, personality: str = "") -> str:
    """Render a compact turn prompt with the required response format."""
    lines = [f"# Fight Club - Turn {view.turn}", ""]
    if personality:
        lines += ["## Team Personality", personality, ""]

    me = view.your_fighter
    if me is not None:
        lines += [
            f"## Your Active Fighter: {me.name} ({me.type.value})",
            f"HP {me.hp}/{me.max_hp} {_hp_bar(me.hp, me.max_hp)}, weak to {me.weakness.value}, "
            f"retreat cost {me.retreat_cost}",
            "",
            f"## Energy: {view.your_energy}/{view.max_energy} (+1 before your action)",
            "",
            "## Attacks",
        ]
        for i, attack in enumerate(me.attacks, start=1):
            effect = f" [{attack.effect.value}]" if attack.effect else ""
            lines.append(f"ATTACK_{i}: {attack.name} ({attack.energy_cost} energy) {attack.damage} dmg{effect}")
        lines.append("")

    lines.append("## Bench")
    if view.your_bench:
        for i, fighter in enumerate(view.your_bench):
            lines.append(f"RETREAT_{i}: {fighter.name} ({fighter.type.value}) {fighter.hp}/{fighter.max_hp} HP")
    else:
        lines.append("No fighters on bench")
    lines.append("")

    enemy = view.enemy_fighter
    if enemy is not None:
        lines += [
            f"## Opponent: {enemy.name} ({enemy.type.value})",
            f"HP {enemy.hp}/{enemy.max_hp} {_hp_bar(enemy.hp, enemy.max_hp)}, weak to {enemy.weakness.value}",
            "",
        ]
        if me is not None and me.type == enemy.weakness:
            lines += [f"ADVANTAGE: {enemy.name} is weak to your {me.type.value} type (+20 damage)", ""]
        if me is not None and enemy.type == me.weakness:
            lines += [f"WARNING: {me.name} is weak to {enemy.type.value} (+20 damage)", ""]

    lines += [
        f"## Score: your KOs {view.your_knockouts}/3, their KOs {view.enemy_knockouts}/3",
        "",
        "## Recent History",
    ]
    if view.history:
        for entry in view.history:
            lines.append(
                f"Turn {entry.turn}: you {entry.your_action} ({entry.your_damage} dmg), "
                f"they {entry.enemy_action} ({entry.enemy_damage} dmg)"
            )
    else:
        lines.append("This is the first turn.")

    lines += [
        "",
        "Respond in this EXACT format:",
        "THINKING: <one or two sentences of strategy>",
        "TRASH_TALK: <a taunt in character>",
        "ACTION: <one of ATTACK_1, ATTACK_2, RETREAT_<bench index>, PASS>",
    ]
    return "\n".join(lines)


def parse_llm_reply(text: str) -> tuple[TurnAction, str, str]:
    """Parse a free-form model reply into (action, thinking, trash_talk).

    Reads ``THINKING:``/``TRASH_TALK:``/``ACTION:`` lines. If the format was
    not followed the text is searched for any action token; with none found
    the first attack is used.
    """
    thinking = ""
    trash_talk = ""
    action: TurnAction | None = None

    for line in text.splitlines():
        stripped = line.strip()
        upper = stripped.upper()
        if upper.startswith("THINKING:"):
            thinking = stripped[len("THINKING:"):].strip()
        elif upper.startswith("TRASH_TALK:"):
            trash_talk = stripped[len("TRASH_TALK:"):].strip()
        elif upper.startswith("ACTION:"):
            action = parse_action_token(stripped[len("ACTION:"):].strip().strip("[]`*"))

    if action is None:
        found = _TOKEN_SEARCH.search(text)
        if found:
            action = parse_action_token(found.group(1))
    if action is None:
        action = TurnAction.attack(0)
    if not thinking:
        thinking = text.strip()[:100]

    return action, thinking, trash_talk


class LLMProvider:
    """Let a chat-completion model pick the action.

    Args:
        api_key: Bearer token for the API. Without one every call fails.
        model: Model name sent with the request.
        base_url: API root; ``/chat/completions`` is appended.
        client: Optional shared AsyncClient.
        prompt_builder: Callable rendering (view, personality) into a prompt.
        personality: Team personality woven into the prompt.
    """

    source = "llm"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        prompt_builder: Callable[[GameView, str], str] | None = None,
        personality: str = "",
    ):
        self.api_key = api_key if api_key is not None else config.openai_api_key
        self.model = model or config.llm_model
        self.base_url = (base_url or config.llm_base_url).rstrip("/")
        self.client = client
        self.prompt_builder = prompt_builder or default_prompt
        self.personality = personality
        self.max_tokens = config.llm_max_tokens
        self.temperature = config.llm_temperature

    async def decide(self, view: GameView, timeout: float) -> Decision:
        if not self.api_key:
            raise DecisionError("No API key configured for the language-model provider")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self.prompt_builder(view, self.personality)},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        url = f"{self.base_url}/chat/completions"

        started = time.perf_counter()
        try:
            if self.client is not None:
                response = await self.client.post(url, json=payload, headers=headers, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
            text = data["choices"][0]["message"]["content"] or ""
        except httpx.HTTPError as e:
            raise DecisionError(f"Language-model request failed: {e}") from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise DecisionError(f"Unexpected language-model response: {e}") from e
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.debug("Model reply for match %s turn %s: %r", view.match_id, view.turn, text)
        action, thinking, trash_talk = parse_llm_reply(text)
        return Decision(
            action=action,
            thinking=thinking,
            trash_talk=trash_talk,
            source=self.source,
            response_time_ms=elapsed_ms,
        )
