"""Roster model: element types, attacks, fighters and a side's battle state."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ElementType(str, Enum):
    """The closed set of fighter elements."""

    FIRE = "fire"
    WATER = "water"
    GRASS = "grass"
    ELECTRIC = "electric"
    PSYCHIC = "psychic"
    FIGHTING = "fighting"
    DARK = "dark"
    NORMAL = "normal"


class EffectTag(str, Enum):
    """Optional attack effects.

    Only HEAL changes state; the others are narrated when the attack lands
    and leave no status behind for later turns.
    """

    BURN = "burn"
    PARALYZE = "paralyze"
    HEAL = "heal"
    ENERGY_BOOST = "energy-boost"
    SHIELD = "shield"


class Attack(BaseModel):
    """One move in a fighter's moveset. Immutable once loaded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    energy_cost: int = Field(default=1, ge=0, alias="energyCost")
    damage: int = Field(default=0, ge=0)
    effect: EffectTag | None = None
    effect_value: int = Field(default=0, ge=0, alias="effectValue")
    description: str = ""


class Fighter(BaseModel):
    """A combatant with runtime HP.

    Created from a team definition at full HP; only the combat engine
    changes it afterwards.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str
    type: ElementType
    max_hp: int = Field(default=100, gt=0, alias="maxHp")
    hp: int | None = None  # Defaults to max_hp
    weakness: ElementType
    retreat_cost: int = Field(default=1, ge=0, alias="retreatCost")
    attacks: list[Attack] = Field(min_length=1)

    # Flavor
    personality: str = ""
    catchphrase: str = ""

    @model_validator(mode="after")
    def _clamp_hp(self) -> Fighter:
        if self.hp is None:
            self.hp = self.max_hp
        self.hp = max(0, min(self.hp, self.max_hp))
        return self

    @property
    def is_knocked_out(self) -> bool:
        return self.hp <= 0

    @property
    def hp_ratio(self) -> float:
        return self.hp / self.max_hp

    def take_damage(self, amount: int) -> int:
        """Apply damage, return actual amount dealt. Clamps to 0."""
        actual = max(0, min(amount, self.hp))
        self.hp -= actual
        return actual

    def heal(self, amount: int) -> int:
        """Heal HP, return actual amount healed. Clamps to max_hp."""
        if self.is_knocked_out:
            return 0
        actual = max(0, min(amount, self.max_hp - self.hp))
        self.hp += actual
        return actual

    def fresh_copy(self) -> Fighter:
        """Return an independent copy restored to full HP."""
        return self.model_copy(update={"hp": self.max_hp}, deep=True)


class TeamConfig(BaseModel):
    """A team definition supplied by the roster source."""

    model_config = ConfigDict(populate_by_name=True)

    team_name: str = Field(alias="teamName")
    personality: str = ""
    fighters: list[Fighter] = Field(min_length=1)


class Player(BaseModel):
    """One side's state for the duration of a match."""

    id: str
    name: str
    active: Fighter | None = None
    bench: list[Fighter] = Field(default_factory=list)
    energy: int = Field(default=0, ge=0)
    knockouts: int = Field(default=0, ge=0)
    personality: str = ""

    @property
    def viable_fighters(self) -> list[Fighter]:
        """All fighters (active first) that still have HP."""
        fighters = [self.active] if self.active is not None else []
        fighters.extend(self.bench)
        return [f for f in fighters if not f.is_knocked_out]

    @property
    def has_viable_fighter(self) -> bool:
        return bool(self.viable_fighters)

    def gain_energy(self, amount: int, cap: int) -> int:
        """Add energy up to the cap, return the amount actually gained."""
        gained = max(0, min(amount, cap - self.energy))
        self.energy += gained
        return gained

    def spend_energy(self, amount: int) -> None:
        if amount > self.energy:
            raise ValueError(f"{self.name} cannot spend {amount} energy with {self.energy}")
        self.energy -= amount

    def swap_with_bench(self, bench_index: int) -> Fighter:
        """Swap the active fighter with the one in a bench slot.

        The outgoing fighter takes the vacated slot, so the bench keeps its
        size and only the contents rotate. Returns the new active fighter.
        """
        incoming = self.bench[bench_index]
        outgoing = self.active
        self.active = incoming
        if outgoing is None:
            del self.bench[bench_index]
        else:
            self.bench[bench_index] = outgoing
        return incoming

    def promote_from_bench(self) -> Fighter | None:
        """Replace the active fighter with the first healthy bench fighter.

        The first bench fighter with HP left is removed from the bench and made
        active. Without one, active becomes None.
        """
        for i, fighter in enumerate(self.bench):
            if not fighter.is_knocked_out:
                self.active = self.bench.pop(i)
                return self.active
        self.active = None
        return None


def create_player(player_id: str, name: str, team: TeamConfig) -> Player:
    """Build a side's battle state from a team definition.

    Fighters are copied so the match never mutates the roster source.
    """
    fighters = [f.fresh_copy() for f in team.fighters]
    for i, fighter in enumerate(fighters):
        if not fighter.id:
            fighter.id = f"{player_id}-fighter-{i + 1}"
    return Player(
        id=player_id,
        name=name,
        active=fighters[0] if fighters else None,
        bench=fighters[1:],
        personality=team.personality,
    )
