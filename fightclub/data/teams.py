"""Built-in teams and the JSON team loader."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from fightclub.core.fighters import Attack, EffectTag, ElementType, Fighter, TeamConfig
from fightclub.errors import RosterError

DEFAULT_TEAM_KEY = "default"

# Attack tuples: (name, energy_cost, damage, effect, effect_value)
AttackRow = tuple[str, int, int, str | None, int]

# Fighter tuples: (name, type, max_hp, weakness, retreat_cost, catchphrase, attacks)
FighterRow = tuple[str, str, int, str, int, str, list[AttackRow]]

BUILTIN_TEAMS: dict[str, tuple[str, str, list[FighterRow]]] = {
    "fire": ("Inferno Squad", "Aggressive and hot-headed. Burn everything down.", [
        ("Emberclaw", "fire", 100, "water", 1, "Feel the heat!", [
            ("Claw Swipe", 1, 30, None, 0),
            ("Flame Burst", 2, 50, "burn", 10),
        ]),
        ("Blazewing", "fire", 90, "water", 1, "Sky's on fire today.", [
            ("Ember Dive", 1, 25, None, 0),
            ("Wildfire", 3, 70, "burn", 10),
        ]),
        ("Magmaul", "fighting", 120, "psychic", 2, "Crushed like cooling rock.", [
            ("Molten Fist", 2, 40, None, 0),
            ("Eruption Slam", 3, 80, None, 0),
        ]),
    ]),
    "water": ("Tidal Force", "Calm and patient. Wear them down like the tide.", [
        ("Tidecaller", "water", 100, "electric", 1, "The tide always returns.", [
            ("Riptide", 1, 25, None, 0),
            ("Tidal Wave", 3, 60, None, 0),
        ]),
        ("Coralisk", "water", 110, "grass", 2, "Patience is a current.", [
            ("Coral Spike", 1, 20, None, 0),
            ("Healing Spring", 2, 30, "heal", 20),
        ]),
        ("Frostfin", "water", 90, "electric", 1, "Chill out.", [
            ("Ice Shard", 1, 30, None, 0),
            ("Glacier Crash", 3, 65, "paralyze", 0),
        ]),
    ]),
    "grass": ("Verdant Grove", "Steady growth. Outlast, then overwhelm.", [
        ("Thornback", "grass", 110, "fire", 1, "Every rose has its thorns.", [
            ("Vine Lash", 1, 25, None, 0),
            ("Bramble Wall", 2, 30, "shield", 20),
        ]),
        ("Mossgrove", "grass", 120, "fire", 2, "Roots run deep.", [
            ("Sap Drain", 2, 35, "heal", 15),
            ("Timber Fall", 3, 70, None, 0),
        ]),
        ("Petalwisp", "psychic", 80, "dark", 1, "Pretty, and pretty dangerous.", [
            ("Petal Storm", 1, 30, None, 0),
            ("Mind Bloom", 2, 50, None, 0),
        ]),
    ]),
    "electric": ("Voltage Crew", "Fast and reckless. Strike first, think later.", [
        ("Sparkjaw", "electric", 90, "fighting", 1, "Shocking, isn't it?", [
            ("Static Bite", 1, 30, "paralyze", 0),
            ("Thunder Crash", 3, 75, None, 0),
        ]),
        ("Voltwing", "electric", 80, "grass", 0, "Catch me if you can.", [
            ("Quick Zap", 1, 25, None, 0),
            ("Overcharge", 2, 45, "energy-boost", 1),
        ]),
        ("Ironcoil", "normal", 110, "fighting", 2, "Grounded and ready.", [
            ("Coil Slam", 2, 40, None, 0),
            ("Magnet Crush", 3, 65, None, 0),
        ]),
    ]),
    "psychic": ("Mindbreakers", "Cunning and cold. Read the opponent, strike the weakness.", [
        ("Oraclis", "psychic", 90, "dark", 1, "I saw this coming.", [
            ("Psi Jab", 1, 30, None, 0),
            ("Mind Crush", 3, 70, None, 0),
        ]),
        ("Hexmoth", "psychic", 80, "dark", 1, "Sleep now.", [
            ("Dream Dust", 1, 20, "paralyze", 0),
            ("Nightmare", 2, 50, None, 0),
        ]),
        ("Brawnmind", "fighting", 110, "psychic", 2, "Brains and brawn.", [
            ("Focus Palm", 1, 30, None, 0),
            ("Meditate", 2, 20, "heal", 30),
        ]),
    ]),
    "dark": ("Shadow Syndicate", "Ruthless tricksters. Fight dirty, finish fast.", [
        ("Nightfang", "dark", 100, "fighting", 1, "You never saw me.", [
            ("Shadow Bite", 1, 30, None, 0),
            ("Eclipse Rend", 3, 70, None, 0),
        ]),
        ("Grimveil", "dark", 90, "fighting", 1, "Fear is a weapon.", [
            ("Curse Touch", 1, 25, "burn", 10),
            ("Soul Siphon", 2, 40, "heal", 20),
        ]),
        ("Cinderhex", "fire", 90, "water", 1, "Smoke and mirrors.", [
            ("Hex Flame", 1, 30, None, 0),
            ("Blackfire", 2, 55, None, 0),
        ]),
    ]),
    DEFAULT_TEAM_KEY: ("Default Team", "A balanced fighter.", [
        ("Starter", "normal", 100, "fighting", 1, "Let's go!", [
            ("Strike", 1, 30, None, 0),
            ("Power Hit", 2, 60, None, 0),
        ]),
    ]),
}


def _build_attack(row: AttackRow) -> Attack:
    name, cost, damage, effect, value = row
    return Attack(
        name=name,
        energy_cost=cost,
        damage=damage,
        effect=EffectTag(effect) if effect else None,
        effect_value=value,
    )


def _build_team(key: str) -> TeamConfig:
    team_name, personality, rows = BUILTIN_TEAMS[key]
    fighters = []
    for i, (name, ftype, max_hp, weakness, retreat, catchphrase, attacks) in enumerate(rows, start=1):
        fighters.append(Fighter(
            id=f"{key}-{i}",
            name=name,
            type=ElementType(ftype),
            max_hp=max_hp,
            weakness=ElementType(weakness),
            retreat_cost=retreat,
            attacks=[_build_attack(a) for a in attacks],
            catchphrase=catchphrase,
        ))
    return TeamConfig(team_name=team_name, personality=personality, fighters=fighters)


def list_teams() -> list[str]:
    """Keys of the built-in element teams (the default team excluded)."""
    return [key for key in BUILTIN_TEAMS if key != DEFAULT_TEAM_KEY]


def get_team(key: str) -> TeamConfig:
    """Return a fresh copy of a built-in team by key (case-insensitive)."""
    normalized = key.strip().lower()
    if normalized not in BUILTIN_TEAMS:
        raise RosterError(f"Unknown team '{key}'. Choose from: {', '.join(list_teams())}")
    return _build_team(normalized)


def default_team() -> TeamConfig:
    return _build_team(DEFAULT_TEAM_KEY)


def load_team(path: str | Path) -> TeamConfig:
    """Load a team definition from a JSON file.

    Keys may be camelCase (``teamName``, ``maxHp``) or snake_case.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise RosterError(f"Could not read team file {path}: {e}") from e
    try:
        return TeamConfig.model_validate(data)
    except ValidationError as e:
        raise RosterError(f"Invalid team file {path}: {e}") from e


def resolve_team(ref: str) -> TeamConfig:
    """Resolve a team key or a path to a JSON team file."""
    if ref.strip().lower() in BUILTIN_TEAMS:
        return get_team(ref)
    path = Path(ref)
    if path.suffix == ".json" or path.exists():
        return load_team(path)
    return get_team(ref)
