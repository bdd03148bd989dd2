"""Main CLI application for fightclub."""

import asyncio
import logging
import random
from pathlib import Path

import typer
from rich.logging import RichHandler
from rich.markup import escape

from fightclub import __version__
from fightclub.agents.base import DecisionProvider
from fightclub.agents.heuristic import HeuristicProvider
from fightclub.agents.llm import LLMProvider
from fightclub.arena.runner import MatchEvent, MatchEventType, MatchRunner
from fightclub.cli.displays import (
    console,
    display_match_result,
    display_simulation_results,
    display_team_list,
    display_turn,
)
from fightclub.core.fighters import TeamConfig, create_player
from fightclub.core.match import Match
from fightclub.data.teams import get_team, list_teams, resolve_team
from fightclub.errors import RosterError
from fightclub.utils.config import config

app = typer.Typer(
    name="fightclub",
    help="Fight Club - turn-based creature battles between AI coaches",
    no_args_is_help=True,
)


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_match(team1: TeamConfig, team2: TeamConfig) -> Match:
    name1, name2 = team1.team_name, team2.team_name
    if name1 == name2:
        name1, name2 = f"{name1} (1)", f"{name2} (2)"
    return Match(
        player1=create_player("player1", name1, team1),
        player2=create_player("player2", name2, team2),
        player1_rating=config.default_rating,
        player2_rating=config.default_rating,
    )


def _heuristic(rng: random.Random) -> HeuristicProvider:
    return HeuristicProvider(rng=random.Random(rng.getrandbits(32)), weakness_bonus=config.weakness_bonus)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Fight Club - pit two teams against each other and watch them brawl."""
    _setup_logging(verbose)


@app.command("teams")
def show_teams() -> None:
    """List the built-in teams."""
    display_team_list({key: get_team(key) for key in list_teams()})


@app.command("fight")
def fight(
    team1: str = typer.Argument(..., help="Team key or path to a team JSON file"),
    team2: str = typer.Argument(..., help="Team key or path to a team JSON file"),
    llm: bool = typer.Option(False, "--llm", help="Let a language model coach both sides"),
    max_turns: int = typer.Option(config.max_turns, "--max-turns", "-t", min=1, help="Turn limit"),
    seed: int = typer.Option(None, "--seed", "-s", help="Random seed for the heuristic coaches"),
    save: Path = typer.Option(None, "--save", help="Write the finished match as JSON"),
) -> None:
    """Run one match locally and show it turn by turn."""
    try:
        first, second = resolve_team(team1), resolve_team(team2)
    except RosterError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    rng = random.Random(seed)
    providers: list[DecisionProvider]
    if llm:
        if not config.openai_api_key:
            console.print("[yellow]OPENAI_API_KEY is not set; every turn will fall back to the heuristic.[/yellow]")
        providers = [LLMProvider(personality=t.personality) for t in (first, second)]
    else:
        providers = [_heuristic(rng), _heuristic(rng)]

    match = _build_match(first, second)
    settings = config.model_copy(update={"max_turns": max_turns})

    def show(event: MatchEvent) -> None:
        if event.type == MatchEventType.START:
            console.print(f"[bold]{match.player1.name}[/bold] vs [bold]{match.player2.name}[/bold]")
        elif event.type == MatchEventType.TURN and event.turn is not None:
            display_turn(event.turn, match)

    runner = MatchRunner(
        providers[0],
        providers[1],
        fallback=_heuristic(rng),
        settings=settings,
        event_sinks=[show],
    )
    asyncio.run(runner.run(match))
    console.print()
    display_match_result(match, runner.rating_change)

    if save:
        save.write_text(match.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[dim]Saved match to {save}[/dim]")


@app.command("simulate")
def simulate(
    battles: int = typer.Argument(20, min=1, help="Number of matches to run"),
    seed: int = typer.Option(None, "--seed", "-s", help="Random seed"),
) -> None:
    """Run heuristic-vs-heuristic matches between random built-in teams."""
    rng = random.Random(seed)
    keys = list_teams()

    async def run_all() -> list[tuple[str, Match]]:
        results = []
        for i in range(battles):
            key1, key2 = rng.sample(keys, 2)
            team1, team2 = get_team(key1), get_team(key2)
            match = _build_match(team1, team2)
            runner = MatchRunner(_heuristic(rng), _heuristic(rng), fallback=_heuristic(rng), settings=config)
            await runner.run(match)
            winner = "Draw" if match.is_draw else match.winner_name
            console.print(f"Battle {i + 1}: {team1.team_name} vs {team2.team_name}... {winner} ({len(match.turns)} turns)")
            results.append((winner, match))
        return results

    results = asyncio.run(run_all())

    wins: dict[str, int] = {}
    for winner, _ in results:
        wins[winner] = wins.get(winner, 0) + 1
    average_turns = sum(len(m.turns) for _, m in results) / len(results)
    console.print()
    display_simulation_results(wins, len(results), average_turns)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    console.print(f"fightclub v{__version__}")


if __name__ == "__main__":
    app()
