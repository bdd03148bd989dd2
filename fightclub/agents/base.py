"""Decision provider contract and the game view each side decides from.

Every provider turns a GameView into a Decision. The view is also the
``gameState`` sent to remote bots, so the models serialise to camelCase.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fightclub.core.combat import MAX_ENERGY, TurnAction
from fightclub.core.fighters import Attack, ElementType, Fighter
from fightclub.core.match import Match


class WireModel(BaseModel):
    """Base for models exchanged with remote bots (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Game view
# ---------------------------------------------------------------------------

class FighterView(WireModel):
    """The deciding side's own active fighter, attacks included."""

    name: str
    type: ElementType
    hp: int
    max_hp: int
    weakness: ElementType
    retreat_cost: int
    attacks: list[Attack]


class EnemyFighterView(WireModel):
    """Public stats of the opponent's active fighter."""

    name: str
    type: ElementType
    hp: int
    max_hp: int
    weakness: ElementType


class BenchView(WireModel):
    name: str
    type: ElementType
    hp: int
    max_hp: int


class HistoryEntry(WireModel):
    turn: int
    your_action: str
    your_damage: int = 0
    enemy_action: str
    enemy_damage: int = 0


class GameView(WireModel):
    """Everything one side may see when choosing its action."""

    match_id: str
    turn: int
    your_fighter: FighterView | None = None
    enemy_fighter: EnemyFighterView | None = None
    your_bench: list[BenchView] = Field(default_factory=list)
    enemy_bench_count: int = 0
    your_energy: int = 0
    max_energy: int = MAX_ENERGY
    your_knockouts: int = 0
    enemy_knockouts: int = 0
    history: list[HistoryEntry] = Field(default_factory=list)


def _own_view(fighter: Fighter) -> FighterView:
    return FighterView(
        name=fighter.name,
        type=fighter.type,
        hp=fighter.hp,
        max_hp=fighter.max_hp,
        weakness=fighter.weakness,
        retreat_cost=fighter.retreat_cost,
        attacks=list(fighter.attacks),
    )


def _enemy_view(fighter: Fighter) -> EnemyFighterView:
    return EnemyFighterView(
        name=fighter.name,
        type=fighter.type,
        hp=fighter.hp,
        max_hp=fighter.max_hp,
        weakness=fighter.weakness,
    )


def build_game_view(
    match: Match,
    player_id: str,
    history_size: int = 5,
    max_energy: int = MAX_ENERGY,
) -> GameView:
    """Build the view of ``match`` as seen by ``player_id``."""
    me = match.get_player(player_id)
    enemy = match.opponent_of(player_id)

    recent = match.turns[-history_size:] if history_size > 0 else []
    history = []
    for record in recent:
        mine, theirs = record.player1, record.player2
        if mine.player_id != player_id:
            mine, theirs = theirs, mine
        history.append(HistoryEntry(
            turn=record.turn,
            your_action=mine.action,
            your_damage=mine.damage,
            enemy_action=theirs.action,
            enemy_damage=theirs.damage,
        ))

    return GameView(
        match_id=match.id,
        turn=match.current_turn + 1,
        your_fighter=_own_view(me.active) if me.active else None,
        enemy_fighter=_enemy_view(enemy.active) if enemy.active else None,
        your_bench=[
            BenchView(name=f.name, type=f.type, hp=f.hp, max_hp=f.max_hp)
            for f in me.bench
        ],
        enemy_bench_count=len(enemy.bench),
        your_energy=me.energy,
        max_energy=max_energy,
        your_knockouts=me.knockouts,
        enemy_knockouts=enemy.knockouts,
        history=history,
    )


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------

class Decision(BaseModel):
    """A provider's answer for one turn."""

    action: TurnAction
    thinking: str = ""
    trash_talk: str = ""
    source: str = ""  # heuristic, webhook, llm, fallback
    response_time_ms: float = 0.0


@runtime_checkable
class DecisionProvider(Protocol):
    """Anything that can choose an action for one side of a match.

    Implementations may raise (DecisionError, httpx errors) or run past the
    deadline; the orchestrator substitutes a fallback decision in either case.
    """

    async def decide(self, view: GameView, timeout: float) -> Decision:
        ...
