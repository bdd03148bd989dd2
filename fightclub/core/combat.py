"""Combat resolution engine.

Pure turn resolution: given both sides' chosen actions it computes damage,
effects and substitutions and mutates the two Player states. No I/O, no
randomness.

Resolution order within a turn is fixed:
    energy regen -> side 1 action -> side 2 action -> knockout checks
Side 1 always resolves first, so when both actives are knocked out in the
same turn side 1's knockout is credited and logged before side 2's.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from fightclub.core.fighters import Attack, EffectTag, ElementType, Fighter, Player

WEAKNESS_BONUS = 20
MAX_ENERGY = 5
ENERGY_REGEN = 1
KNOCKOUTS_TO_WIN = 3

# Winner marker for drawn matches
DRAW = "DRAW"


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class ActionKind(str, Enum):
    """Types of actions a side can take each turn."""

    ATTACK = "attack"
    RETREAT = "retreat"
    PASS = "pass"


class TurnAction(BaseModel):
    """One side's choice for a turn.

    ``index`` is the attack index for ATTACK and the bench slot for RETREAT.
    It is bound-checked by the engine, not here.
    """

    model_config = ConfigDict(frozen=True)

    kind: ActionKind
    index: int = Field(default=0, ge=0)

    @classmethod
    def attack(cls, index: int = 0) -> TurnAction:
        return cls(kind=ActionKind.ATTACK, index=index)

    @classmethod
    def retreat(cls, bench_index: int = 0) -> TurnAction:
        return cls(kind=ActionKind.RETREAT, index=bench_index)

    @classmethod
    def pass_turn(cls) -> TurnAction:
        return cls(kind=ActionKind.PASS)

    def to_token(self) -> str:
        """Render as a wire token: ATTACK_1, RETREAT_0, PASS."""
        if self.kind == ActionKind.ATTACK:
            return f"ATTACK_{self.index + 1}"
        if self.kind == ActionKind.RETREAT:
            return f"RETREAT_{self.index}"
        return "PASS"


_ATTACK_TOKEN = re.compile(r"^ATTACK[_ ]?(\d+)$")
_RETREAT_TOKEN = re.compile(r"^RETREAT[_ ]?(\d*)$")


def parse_action_token(token: str) -> TurnAction | None:
    """Parse a wire token into a TurnAction, or None if unrecognised.

    Attack tokens are 1-based (ATTACK_1 is the first attack), retreat tokens
    are 0-based bench slots. ``ATTACK1`` and ``ATTACK 1`` spellings are accepted too.
    """
    text = token.strip().upper()
    if text == "PASS":
        return TurnAction.pass_turn()
    match = _ATTACK_TOKEN.match(text)
    if match:
        number = int(match.group(1))
        if number < 1:
            return None
        return TurnAction.attack(number - 1)
    match = _RETREAT_TOKEN.match(text)
    if match:
        return TurnAction.retreat(int(match.group(1) or 0))
    return None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class AttackResult(BaseModel):
    """Outcome of a single attack attempt."""

    success: bool = False
    damage: int = 0
    energy_spent: int = 0
    effect: EffectTag | None = None
    effect_value: int = 0
    healed: int = 0
    super_effective: bool = False
    description: str = ""


class TurnSide(BaseModel):
    """What one side did during a resolved turn."""

    player_id: str
    player_name: str
    fighter: str | None = None  # Fighter that acted
    action: str = "PASS"  # Wire token
    thinking: str = ""
    trash_talk: str = ""
    source: str = ""  # Decision provider that produced the action
    damage: int = 0
    healed: int = 0
    effect: EffectTag | None = None
    super_effective: bool = False
    energy_before: int = 0
    energy_after: int = 0
    knocked_out: bool = False  # This side's active fighter was knocked out


class TurnRecord(BaseModel):
    """One entry of a match replay."""

    turn: int
    player1: TurnSide
    player2: TurnSide
    events: list[str] = Field(default_factory=list)


class TurnResult(BaseModel):
    """Return value of process_turn."""

    record: TurnRecord
    player1_knocked_out: bool = False
    player2_knocked_out: bool = False


# ---------------------------------------------------------------------------
# Damage and attacks
# ---------------------------------------------------------------------------

def compute_damage(
    attack: Attack,
    attacker_type: ElementType,
    defender_weakness: ElementType,
    weakness_bonus: int = WEAKNESS_BONUS,
) -> tuple[int, bool]:
    """Return (damage, was_super_effective).

    Elemental advantage is a flat bonus added when the attacker's type is the
    defender's weakness. It is never a multiplier.
    """
    if attacker_type == defender_weakness:
        return attack.damage + weakness_bonus, True
    return attack.damage, False


_EFFECT_TEXT = {
    EffectTag.BURN: "{defender} is scorched by the flames!",
    EffectTag.PARALYZE: "{defender} is jolted and paralyzed!",
    EffectTag.SHIELD: "{attacker} raises a shield!",
    EffectTag.ENERGY_BOOST: "{attacker} crackles with energy!",
}


def execute_attack(
    attacker: Fighter,
    defender: Fighter,
    attack_index: int,
    attacker_energy: int,
    weakness_bonus: int = WEAKNESS_BONUS,
) -> AttackResult:
    """Resolve one attack attempt.

    An invalid index or insufficient energy is a normal outcome: the result
    is unsuccessful, deals nothing and explains why. On success the heal
    effect is applied to the attacker here; the damage is returned for the
    caller to apply to the defender.
    """
    if not 0 <= attack_index < len(attacker.attacks):
        return AttackResult(
            description=f"{attacker.name} doesn't know attack #{attack_index + 1}! The move fizzles.",
        )

    attack = attacker.attacks[attack_index]
    if attacker_energy < attack.energy_cost:
        return AttackResult(
            description=(
                f"{attacker.name} doesn't have enough energy for {attack.name} "
                f"({attacker_energy}/{attack.energy_cost})!"
            ),
        )

    damage, super_effective = compute_damage(attack, attacker.type, defender.weakness, weakness_bonus)
    description = f"{attacker.name} used {attack.name} on {defender.name} for {damage} damage!"
    if super_effective:
        description += " It's super effective!"

    healed = 0
    if attack.effect == EffectTag.HEAL:
        healed = attacker.heal(attack.effect_value)
        description += f" {attacker.name} heals {healed} HP!"
    elif attack.effect is not None:
        description += " " + _EFFECT_TEXT[attack.effect].format(attacker=attacker.name, defender=defender.name)

    return AttackResult(
        success=True,
        damage=damage,
        energy_spent=attack.energy_cost,
        effect=attack.effect,
        effect_value=attack.effect_value,
        healed=healed,
        super_effective=super_effective,
        description=description,
    )


# ---------------------------------------------------------------------------
# Turn resolution
# ---------------------------------------------------------------------------

def _apply_action(
    player: Player,
    opponent: Player,
    action: TurnAction,
    side: TurnSide,
    events: list[str],
    weakness_bonus: int,
) -> None:
    """Apply one side's action, recording the outcome on ``side``."""
    fighter = player.active

    if action.kind == ActionKind.PASS:
        events.append(f"{player.name} passes.")
        return

    if fighter is None:
        events.append(f"{player.name} has no fighter able to act.")
        return

    if action.kind == ActionKind.ATTACK:
        target = opponent.active
        if target is None:
            events.append(f"{fighter.name} has no target to attack.")
            return
        result = execute_attack(fighter, target, action.index, player.energy, weakness_bonus)
        events.append(result.description)
        if not result.success:
            return
        player.spend_energy(result.energy_spent)
        side.damage = target.take_damage(result.damage)
        side.healed = result.healed
        side.effect = result.effect
        side.super_effective = result.super_effective
        return

    # Retreat
    if fighter.is_knocked_out:
        events.append(f"{fighter.name} is knocked out and can't retreat!")
        return
    if not 0 <= action.index < len(player.bench):
        events.append(f"{player.name} has no fighter in bench slot {action.index}! The retreat fails.")
        return
    if player.bench[action.index].is_knocked_out:
        events.append(f"{player.bench[action.index].name} can't battle! The retreat fails.")
        return
    if player.energy < fighter.retreat_cost:
        events.append(
            f"{fighter.name} doesn't have enough energy to retreat "
            f"({player.energy}/{fighter.retreat_cost})! It stays in."
        )
        return
    player.spend_energy(fighter.retreat_cost)
    incoming = player.swap_with_bench(action.index)
    events.append(f"{player.name} retreats {fighter.name} and sends in {incoming.name}!")


def _check_knockout(victim: Player, victor: Player, events: list[str], knockouts_to_win: int) -> bool:
    fighter = victim.active
    if fighter is None or not fighter.is_knocked_out:
        return False
    victor.knockouts += 1
    events.append(
        f"{fighter.name} is knocked out! {victor.name} scores a knockout "
        f"({victor.knockouts}/{knockouts_to_win})."
    )
    replacement = victim.promote_from_bench()
    if replacement is not None:
        events.append(f"{victim.name} sends out {replacement.name}!")
    else:
        events.append(f"{victim.name} has no fighters left!")
    return True


def process_turn(
    player1: Player,
    player2: Player,
    action1: TurnAction,
    action2: TurnAction,
    turn_number: int,
    *,
    max_energy: int = MAX_ENERGY,
    weakness_bonus: int = WEAKNESS_BONUS,
    knockouts_to_win: int = KNOCKOUTS_TO_WIN,
) -> TurnResult:
    """Resolve a full turn where both sides have chosen an action.

    Mutation: updates both players in-place (HP, energy, active, bench,
    knockouts). Returns the replay record and per-side knockout flags.
    """
    events: list[str] = []
    sides = []
    for player, action in ((player1, action1), (player2, action2)):
        sides.append(TurnSide(
            player_id=player.id,
            player_name=player.name,
            fighter=player.active.name if player.active else None,
            action=action.to_token(),
            energy_before=player.energy,
        ))
    side1, side2 = sides

    # Energy regenerates for both sides before anything else
    player1.gain_energy(ENERGY_REGEN, max_energy)
    player2.gain_energy(ENERGY_REGEN, max_energy)

    _apply_action(player1, player2, action1, side1, events, weakness_bonus)
    _apply_action(player2, player1, action2, side2, events, weakness_bonus)

    # Side 1's knockout is credited first
    side2.knocked_out = _check_knockout(player2, player1, events, knockouts_to_win)
    side1.knocked_out = _check_knockout(player1, player2, events, knockouts_to_win)

    side1.energy_after = player1.energy
    side2.energy_after = player2.energy

    record = TurnRecord(turn=turn_number, player1=side1, player2=side2, events=events)
    return TurnResult(
        record=record,
        player1_knocked_out=side1.knocked_out,
        player2_knocked_out=side2.knocked_out,
    )


def check_winner(
    player1: Player,
    player2: Player,
    knockouts_to_win: int = KNOCKOUTS_TO_WIN,
) -> str | None:
    """Return the winning player's id, DRAW, or None while undecided."""
    p1_done = player1.knockouts >= knockouts_to_win
    p2_done = player2.knockouts >= knockouts_to_win
    if p1_done and p2_done:
        return DRAW
    if p1_done:
        return player1.id
    if p2_done:
        return player2.id

    p1_alive = player1.has_viable_fighter
    p2_alive = player2.has_viable_fighter
    if not p1_alive and not p2_alive:
        return DRAW
    if not p1_alive:
        return player2.id
    if not p2_alive:
        return player1.id
    return None
