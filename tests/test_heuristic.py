"""Tests for the heuristic decision provider."""

import random

import pytest

from fightclub.agents.base import BenchView, EnemyFighterView, FighterView, GameView
from fightclub.agents.heuristic import HeuristicProvider
from fightclub.core.combat import ActionKind, TurnAction
from fightclub.core.fighters import Attack, ElementType


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_attacks() -> list[Attack]:
    return [
        Attack(name="Jab", energy_cost=1, damage=30),
        Attack(name="Haymaker", energy_cost=2, damage=60),
    ]


def _make_view(
    hp=100,
    energy=0,
    attacks=None,
    bench=None,
    retreat_cost=1,
    fighter_type=ElementType.NORMAL,
    enemy_weakness=ElementType.FIGHTING,
) -> GameView:
    return GameView(
        match_id="m1",
        turn=1,
        your_fighter=FighterView(
            name="Boxer",
            type=fighter_type,
            hp=hp,
            max_hp=100,
            weakness=ElementType.PSYCHIC,
            retreat_cost=retreat_cost,
            attacks=attacks or _make_attacks(),
        ),
        enemy_fighter=EnemyFighterView(
            name="Target", type=ElementType.DARK, hp=100, max_hp=100, weakness=enemy_weakness,
        ),
        your_bench=bench or [],
        enemy_bench_count=1,
        your_energy=energy,
    )


def _bench(name, hp) -> BenchView:
    return BenchView(name=name, type=ElementType.GRASS, hp=hp, max_hp=100)


def _provider(**kwargs) -> HeuristicProvider:
    kwargs.setdefault("variety_chance", 0.0)
    return HeuristicProvider(rng=random.Random(7), **kwargs)


# ---------------------------------------------------------------------------
# Attacks
# ---------------------------------------------------------------------------


class TestAttackChoice:
    """The heuristic picks the strongest attack it can afford."""

    def test_counts_regenerated_energy(self):
        # 1 stored + 1 regen affords the 2-cost attack
        decision = _provider().choose(_make_view(energy=1))
        assert decision.action == TurnAction.attack(1)

    def test_cheapest_when_low_energy(self):
        decision = _provider().choose(_make_view(energy=0))
        assert decision.action == TurnAction.attack(0)

    def test_energy_cap_respected(self):
        attacks = [Attack(name="Tap", energy_cost=1, damage=10), Attack(name="Nuke", energy_cost=6, damage=200)]
        decision = _provider().choose(_make_view(energy=5, attacks=attacks))
        assert decision.action == TurnAction.attack(0)

    def test_pass_when_nothing_affordable(self):
        attacks = [Attack(name="Nuke", energy_cost=3, damage=200)]
        decision = _provider().choose(_make_view(energy=0, attacks=attacks))
        assert decision.action.kind == ActionKind.PASS

    def test_mentions_weakness(self):
        view = _make_view(energy=4, fighter_type=ElementType.FIRE, enemy_weakness=ElementType.FIRE)
        decision = _provider().choose(view)
        assert decision.action == TurnAction.attack(1)
        assert "80 damage" in decision.thinking
        assert "weak" in decision.thinking

    def test_variety_picks_another_attack(self):
        decision = _provider(variety_chance=1.0).choose(_make_view(energy=4))
        assert decision.action == TurnAction.attack(0)

    def test_variety_needs_two_options(self):
        decision = _provider(variety_chance=1.0).choose(_make_view(energy=0))
        assert decision.action == TurnAction.attack(0)


# ---------------------------------------------------------------------------
# Retreats
# ---------------------------------------------------------------------------


class TestRetreatChoice:
    """The heuristic retreats a badly hurt fighter when it pays off."""

    def test_retreats_to_healthiest(self):
        view = _make_view(hp=20, bench=[_bench("Medium", 50), _bench("Fresh", 90)])
        decision = _provider().choose(view)
        assert decision.action == TurnAction.retreat(1)
        assert "Fresh" in decision.thinking

    def test_no_retreat_above_threshold(self):
        view = _make_view(hp=40, bench=[_bench("Fresh", 100)])
        decision = _provider().choose(view)
        assert decision.action.kind == ActionKind.ATTACK

    def test_no_retreat_to_weaker_bench(self):
        view = _make_view(hp=20, bench=[_bench("Worse", 10)])
        decision = _provider().choose(view)
        assert decision.action.kind == ActionKind.ATTACK

    def test_no_retreat_when_unaffordable(self):
        view = _make_view(hp=20, energy=0, retreat_cost=3, bench=[_bench("Fresh", 100)])
        decision = _provider().choose(view)
        assert decision.action.kind == ActionKind.ATTACK

    def test_custom_threshold(self):
        view = _make_view(hp=45, bench=[_bench("Fresh", 100)])
        decision = _provider(critical_hp_ratio=0.5).choose(view)
        assert decision.action == TurnAction.retreat(0)


class TestDecide:
    """Tests for the async provider interface."""

    @pytest.mark.asyncio
    async def test_decide_matches_choose(self):
        decision = await _provider().decide(_make_view(energy=1), timeout=1.0)
        assert decision.action == TurnAction.attack(1)
        assert decision.source == "heuristic"
        assert decision.trash_talk

    @pytest.mark.asyncio
    async def test_no_fighter_passes(self):
        view = _make_view()
        view.your_fighter = None
        decision = await _provider().decide(view, timeout=1.0)
        assert decision.action.kind == ActionKind.PASS
