"""Deterministic rule-based decision provider.

Also serves as the universal fallback: ``choose`` is synchronous and never
raises, so the orchestrator can always get an action out of it.
"""

from __future__ import annotations

import random

from fightclub.agents.base import Decision, GameView
from fightclub.core.combat import WEAKNESS_BONUS, TurnAction

TAUNTS = [
    "Is that all you've got?",
    "You're going down!",
    "I've seen tougher training dummies.",
    "Better luck next turn.",
    "Watch and learn.",
]


class HeuristicProvider:
    """Pick the strongest affordable attack, retreating when badly hurt.

    Args:
        rng: Random source for the occasional off-script attack and taunts.
        variety_chance: Probability of picking a different affordable attack.
        critical_hp_ratio: HP ratio below which a retreat is considered.
    """

    source = "heuristic"

    def __init__(
        self,
        rng: random.Random | None = None,
        variety_chance: float = 0.2,
        critical_hp_ratio: float = 0.3,
        weakness_bonus: int = WEAKNESS_BONUS,
    ):
        self.rng = rng or random.Random()
        self.variety_chance = variety_chance
        self.critical_hp_ratio = critical_hp_ratio
        self.weakness_bonus = weakness_bonus

    async def decide(self, view: GameView, timeout: float) -> Decision:
        return self.choose(view)

    def choose(self, view: GameView) -> Decision:
        fighter = view.your_fighter
        if fighter is None:
            return self._decision(TurnAction.pass_turn(), "Nobody left to fight.", "")

        # Energy regenerates before actions resolve
        energy = min(view.max_energy, view.your_energy + 1)
        hp_ratio = fighter.hp / fighter.max_hp

        if hp_ratio < self.critical_hp_ratio and view.your_bench and energy >= fighter.retreat_cost:
            best_index, best = max(
                enumerate(view.your_bench),
                key=lambda item: item[1].hp / item[1].max_hp,
            )
            if best.hp > 0 and best.hp / best.max_hp > hp_ratio:
                return self._decision(
                    TurnAction.retreat(best_index),
                    f"{fighter.name} is at {fighter.hp}/{fighter.max_hp} HP. Tagging in {best.name}.",
                    "Tactical retreat. I'll be back.",
                )

        affordable = [
            (i, attack) for i, attack in enumerate(fighter.attacks)
            if attack.energy_cost <= energy
        ]
        if not affordable:
            return self._decision(
                TurnAction.pass_turn(),
                f"Only {energy} energy. Charging up.",
                "Enjoy it while it lasts.",
            )

        super_effective = (
            view.enemy_fighter is not None and fighter.type == view.enemy_fighter.weakness
        )
        bonus = self.weakness_bonus if super_effective else 0
        index, attack = max(affordable, key=lambda item: item[1].damage + bonus)

        if len(affordable) > 1 and self.rng.random() < self.variety_chance:
            index, attack = self.rng.choice([item for item in affordable if item[0] != index])

        thinking = f"{attack.name} for {attack.damage + bonus} damage"
        if super_effective:
            thinking += f", {view.enemy_fighter.name} is weak to {fighter.type.value}"
        return self._decision(TurnAction.attack(index), thinking + ".", self.rng.choice(TAUNTS))

    def _decision(self, action: TurnAction, thinking: str, trash_talk: str) -> Decision:
        return Decision(action=action, thinking=thinking, trash_talk=trash_talk, source=self.source)
