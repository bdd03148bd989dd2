"""Tests for the combat resolution engine."""

import pytest

from fightclub.core.combat import (
    DRAW,
    ActionKind,
    TurnAction,
    check_winner,
    compute_damage,
    execute_attack,
    parse_action_token,
    process_turn,
)
from fightclub.core.fighters import Attack, EffectTag, ElementType, Fighter, Player


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_attack(name="Strike", cost=1, damage=30, effect=None, effect_value=0) -> Attack:
    return Attack(name=name, energy_cost=cost, damage=damage, effect=effect, effect_value=effect_value)


def _make_fighter(name="Brawler", type_=ElementType.NORMAL, hp=100, max_hp=100, weakness=ElementType.FIGHTING,
                  retreat_cost=1, attacks=None) -> Fighter:
    return Fighter(
        name=name,
        type=type_,
        max_hp=max_hp,
        hp=hp,
        weakness=weakness,
        retreat_cost=retreat_cost,
        attacks=attacks or [_make_attack()],
    )


def _make_player(player_id="p1", fighters=None, energy=0, knockouts=0) -> Player:
    fighters = fighters or [_make_fighter()]
    return Player(
        id=player_id,
        name=player_id.upper(),
        active=fighters[0],
        bench=list(fighters[1:]),
        energy=energy,
        knockouts=knockouts,
    )


def _emberclaw() -> Fighter:
    return _make_fighter(
        "Emberclaw", ElementType.FIRE, weakness=ElementType.WATER,
        attacks=[_make_attack("Claw Swipe", cost=1, damage=30)],
    )


def _tidecaller() -> Fighter:
    return _make_fighter(
        "Tidecaller", ElementType.WATER, weakness=ElementType.ELECTRIC,
        attacks=[_make_attack("Riptide", cost=1, damage=25)],
    )


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class TestTurnAction:
    """Tests for action tokens."""

    def test_to_token(self):
        assert TurnAction.attack(0).to_token() == "ATTACK_1"
        assert TurnAction.attack(1).to_token() == "ATTACK_2"
        assert TurnAction.retreat(2).to_token() == "RETREAT_2"
        assert TurnAction.pass_turn().to_token() == "PASS"

    @pytest.mark.parametrize("token, kind, index", [
        ("ATTACK_1", ActionKind.ATTACK, 0),
        ("attack_2", ActionKind.ATTACK, 1),
        ("ATTACK2", ActionKind.ATTACK, 1),
        ("Attack 2", ActionKind.ATTACK, 1),
        ("RETREAT 1", ActionKind.RETREAT, 1),
        (" RETREAT_1 ", ActionKind.RETREAT, 1),
        ("RETREAT0", ActionKind.RETREAT, 0),
        ("RETREAT", ActionKind.RETREAT, 0),
        ("pass", ActionKind.PASS, 0),
    ])
    def test_parse_valid(self, token, kind, index):
        action = parse_action_token(token)
        assert action.kind == kind
        assert action.index == index

    @pytest.mark.parametrize("token", ["", "DEFEND", "ATTACK_0", "ATTACK_X", "RETREAT_-1", "ATTACK  1", "ATTACK__1"])
    def test_parse_invalid(self, token):
        assert parse_action_token(token) is None


# ---------------------------------------------------------------------------
# Damage / attacks
# ---------------------------------------------------------------------------


class TestComputeDamage:
    """Tests for elemental damage."""

    def test_weakness_adds_flat_bonus(self):
        damage, super_effective = compute_damage(_make_attack(damage=25), ElementType.WATER, ElementType.WATER)
        assert damage == 45
        assert super_effective is True

    def test_no_bonus_without_weakness(self):
        damage, super_effective = compute_damage(_make_attack(damage=25), ElementType.WATER, ElementType.ELECTRIC)
        assert damage == 25
        assert super_effective is False

    def test_bonus_is_not_a_multiplier(self):
        damage, _ = compute_damage(_make_attack(damage=100), ElementType.FIRE, ElementType.FIRE)
        assert damage == 120

    def test_zero_damage_attack_still_gets_bonus(self):
        damage, _ = compute_damage(_make_attack(damage=0), ElementType.DARK, ElementType.DARK)
        assert damage == 20


class TestExecuteAttack:
    """Tests for single attack resolution."""

    def test_success(self):
        result = execute_attack(_emberclaw(), _tidecaller(), 0, attacker_energy=1)
        assert result.success is True
        assert result.damage == 30
        assert result.energy_spent == 1
        assert "Claw Swipe" in result.description

    def test_does_not_damage_defender(self):
        defender = _tidecaller()
        execute_attack(_emberclaw(), defender, 0, attacker_energy=1)
        assert defender.hp == 100

    def test_invalid_index(self):
        result = execute_attack(_emberclaw(), _tidecaller(), 3, attacker_energy=5)
        assert result.success is False
        assert result.damage == 0
        assert result.energy_spent == 0
        assert result.description

    def test_insufficient_energy(self):
        attacker = _make_fighter(attacks=[_make_attack("Big Hit", cost=3, damage=80)])
        result = execute_attack(attacker, _tidecaller(), 0, attacker_energy=2)
        assert result.success is False
        assert result.damage == 0
        assert "enough energy" in result.description

    def test_heal_effect_restores_attacker(self):
        attacker = _make_fighter(hp=50, attacks=[_make_attack("Drain", damage=20, effect=EffectTag.HEAL, effect_value=30)])
        result = execute_attack(attacker, _tidecaller(), 0, attacker_energy=1)
        assert result.healed == 30
        assert attacker.hp == 80

    def test_heal_capped_at_max(self):
        attacker = _make_fighter(hp=95, attacks=[_make_attack("Drain", effect=EffectTag.HEAL, effect_value=30)])
        result = execute_attack(attacker, _tidecaller(), 0, attacker_energy=1)
        assert result.healed == 5
        assert attacker.hp == 100

    def test_other_effects_are_narrated_only(self):
        attacker = _make_fighter(attacks=[_make_attack("Scorch", effect=EffectTag.BURN, effect_value=10)])
        defender = _tidecaller()
        result = execute_attack(attacker, defender, 0, attacker_energy=1)
        assert result.effect == EffectTag.BURN
        assert result.healed == 0
        assert "Tidecaller" in result.description
        assert defender.hp == 100


# ---------------------------------------------------------------------------
# process_turn
# ---------------------------------------------------------------------------


class TestProcessTurn:
    """Tests for full turn resolution."""

    def test_emberclaw_vs_tidecaller(self):
        p1 = _make_player("p1", [_emberclaw()])
        p2 = _make_player("p2", [_tidecaller()])

        result = process_turn(p1, p2, TurnAction.attack(0), TurnAction.attack(0), 1)

        assert p1.active.hp == 55  # 25 base + 20 weakness
        assert p2.active.hp == 70
        assert p1.energy == 0
        assert p2.energy == 0
        assert result.record.player1.damage == 30
        assert result.record.player2.damage == 45
        assert result.record.player2.super_effective is True
        assert result.player1_knocked_out is False
        assert result.player2_knocked_out is False

    def test_record_sides(self):
        p1 = _make_player("p1", [_emberclaw()])
        p2 = _make_player("p2", [_tidecaller()])
        record = process_turn(p1, p2, TurnAction.attack(0), TurnAction.pass_turn(), 4).record
        assert record.turn == 4
        assert record.player1.player_id == "p1"
        assert record.player1.fighter == "Emberclaw"
        assert record.player1.action == "ATTACK_1"
        assert record.player1.energy_before == 0
        assert record.player1.energy_after == 0
        assert record.player2.action == "PASS"
        assert record.player2.energy_after == 1

    def test_failed_retreat_for_energy(self):
        stuck = _make_fighter("Stuck", retreat_cost=2)
        p1 = _make_player("p1", [stuck, _make_fighter("Reserve")])
        p2 = _make_player("p2", [_make_fighter("Hitter", attacks=[_make_attack(damage=30)])])

        result = process_turn(p1, p2, TurnAction.retreat(0), TurnAction.attack(0), 1)

        assert p1.active is stuck
        assert [f.name for f in p1.bench] == ["Reserve"]
        assert p1.energy == 1
        assert stuck.hp == 70  # Opponent's attack still landed
        assert any("enough energy to retreat" in e for e in result.record.events)

    def test_energy_regenerates_before_retreat(self):
        fighter = _make_fighter("Tired", retreat_cost=1)
        p1 = _make_player("p1", [fighter, _make_fighter("Fresh")])
        p2 = _make_player("p2")

        process_turn(p1, p2, TurnAction.retreat(0), TurnAction.pass_turn(), 1)

        assert p1.active.name == "Fresh"
        assert p1.bench[0] is fighter
        assert p1.energy == 0

    def test_retreat_to_missing_bench_slot(self):
        p1 = _make_player("p1", [_make_fighter("Solo")], energy=3)
        p2 = _make_player("p2")
        result = process_turn(p1, p2, TurnAction.retreat(1), TurnAction.pass_turn(), 1)
        assert p1.active.name == "Solo"
        assert p1.energy == 4
        assert any("no fighter in bench slot 1" in e for e in result.record.events)

    def test_retreat_then_opponent_hits_new_active(self):
        p1 = _make_player("p1", [_make_fighter("Out"), _make_fighter("In")], energy=1)
        p2 = _make_player("p2")
        process_turn(p1, p2, TurnAction.retreat(0), TurnAction.attack(0), 1)
        assert p1.active.name == "In"
        assert p1.active.hp == 70
        assert p1.bench[0].hp == 100

    def test_energy_capped(self):
        p1 = _make_player("p1", energy=5)
        p2 = _make_player("p2", energy=5)
        process_turn(p1, p2, TurnAction.pass_turn(), TurnAction.pass_turn(), 1)
        assert p1.energy == 5
        assert p2.energy == 5

    def test_invalid_attack_fizzles(self):
        p1 = _make_player("p1")
        p2 = _make_player("p2")
        result = process_turn(p1, p2, TurnAction.attack(1), TurnAction.pass_turn(), 1)
        assert p2.active.hp == 100
        assert p1.energy == 1
        assert result.record.player1.damage == 0

    def test_knocked_out_fighter_still_acts(self):
        p1 = _make_player("p1", [_make_fighter("Fast", attacks=[_make_attack(damage=50)])])
        p2 = _make_player("p2", [_make_fighter("Fragile", hp=10, attacks=[_make_attack(damage=40)])])

        process_turn(p1, p2, TurnAction.attack(0), TurnAction.attack(0), 1)

        assert p1.active.hp == 60
        assert p2.active is None
        assert p1.knockouts == 1

    def test_knockout_promotes_first_healthy_bench(self):
        p1 = _make_player("p1", [_make_fighter(attacks=[_make_attack(damage=100)])])
        p2 = _make_player("p2", [
            _make_fighter("Front"),
            _make_fighter("Fallen", hp=0),
            _make_fighter("Backup"),
        ])
        result = process_turn(p1, p2, TurnAction.attack(0), TurnAction.pass_turn(), 1)
        assert result.player2_knocked_out is True
        assert result.record.player2.knocked_out is True
        assert p2.active.name == "Backup"
        assert [f.name for f in p2.bench] == ["Fallen"]

    def test_double_knockout_credits_side_one_first(self):
        p1 = _make_player("p1", [_make_fighter("A", hp=10), _make_fighter("B")])
        p2 = _make_player("p2", [_make_fighter("C", hp=10), _make_fighter("D")])

        result = process_turn(p1, p2, TurnAction.attack(0), TurnAction.attack(0), 1)
        events = result.record.events

        assert p1.knockouts == 1
        assert p2.knockouts == 1
        assert result.player1_knocked_out and result.player2_knocked_out
        c_out = next(i for i, e in enumerate(events) if e.startswith("C is knocked out"))
        a_out = next(i for i, e in enumerate(events) if e.startswith("A is knocked out"))
        assert c_out < a_out
        assert p1.active.name == "B"
        assert p2.active.name == "D"

    def test_bounds_hold_after_turn(self):
        p1 = _make_player("p1", [_make_fighter(hp=5, attacks=[_make_attack(cost=0, damage=500)])], energy=5)
        p2 = _make_player("p2", [_make_fighter(hp=5, attacks=[_make_attack(cost=0, damage=500)])], energy=0)
        process_turn(p1, p2, TurnAction.attack(0), TurnAction.attack(0), 1)
        for player in (p1, p2):
            assert 0 <= player.energy <= 5
            for fighter in player.bench + ([player.active] if player.active else []):
                assert 0 <= fighter.hp <= fighter.max_hp


# ---------------------------------------------------------------------------
# check_winner
# ---------------------------------------------------------------------------


class TestCheckWinner:
    """Tests for terminal condition checks."""

    def test_undecided(self):
        assert check_winner(_make_player("p1"), _make_player("p2")) is None

    def test_three_knockouts_wins(self):
        assert check_winner(_make_player("p1", knockouts=3), _make_player("p2", knockouts=2)) == "p1"
        assert check_winner(_make_player("p1", knockouts=1), _make_player("p2", knockouts=3)) == "p2"

    def test_both_at_three_knockouts_draw(self):
        assert check_winner(_make_player("p1", knockouts=3), _make_player("p2", knockouts=3)) == DRAW

    def test_elimination(self):
        p1 = _make_player("p1")
        p2 = Player(id="p2", name="P2", active=None, bench=[])
        assert check_winner(p1, p2) == "p1"
        assert check_winner(p2, p1) == "p1"

    def test_both_eliminated_draw(self):
        p1 = Player(id="p1", name="P1")
        p2 = Player(id="p2", name="P2")
        assert check_winner(p1, p2) == DRAW

    def test_knockouts_take_precedence_over_elimination(self):
        p1 = Player(id="p1", name="P1", knockouts=3)
        p2 = Player(id="p2", name="P2")
        assert check_winner(p1, p2) == "p1"
