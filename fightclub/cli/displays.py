"""Rich display components for the CLI."""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from fightclub.core.combat import TurnRecord, TurnSide
from fightclub.core.fighters import Fighter, Player, TeamConfig
from fightclub.core.match import Match
from fightclub.core.rating import RatingChange

console = Console()


TYPE_COLORS = {
    "normal": "white",
    "fire": "red",
    "water": "blue",
    "electric": "yellow",
    "grass": "green",
    "fighting": "red",
    "psychic": "magenta",
    "dark": "white",
}

SOURCE_STYLES = {
    "heuristic": "dim",
    "webhook": "cyan",
    "llm": "magenta",
    "fallback": "yellow",
}


def hp_bar(current: int, maximum: int, width: int = 10) -> str:
    """Render an HP bar like ``[#######---]`` colored by remaining HP."""
    filled = round(current / maximum * width) if maximum else 0
    ratio = current / maximum if maximum else 0
    color = "green" if ratio > 0.5 else "yellow" if ratio > 0.2 else "red"
    return f"[{color}]{'#' * filled}[/{color}][dim]{'-' * (width - filled)}[/dim]"


def _fighter_label(fighter: Fighter) -> str:
    color = TYPE_COLORS.get(fighter.type.value, "white")
    return f"[{color}]{fighter.name}[/{color}]"


def display_team_list(teams: dict[str, TeamConfig]) -> None:
    """Display the built-in teams in a table."""
    table = Table(title="Teams", box=box.ROUNDED)
    table.add_column("Key", style="bold")
    table.add_column("Team", min_width=16)
    table.add_column("Fighters", min_width=30)
    table.add_column("Personality", style="dim")

    for key, team in teams.items():
        fighters = ", ".join(
            f"{_fighter_label(f)} ({f.max_hp} HP)" for f in team.fighters
        )
        table.add_row(key, team.team_name, fighters, team.personality)

    console.print(table)


def player_status_line(player: Player) -> str:
    """One-line status of a side: active fighter, HP, energy, knockouts."""
    if player.active is None:
        return f"[bold]{player.name}[/bold] [dim]no fighters left[/dim]"
    active = player.active
    return (
        f"[bold]{player.name}[/bold] {_fighter_label(active)} "
        f"{hp_bar(active.hp, active.max_hp)} {active.hp}/{active.max_hp} | "
        f"Energy {player.energy} | KOs {player.knockouts} | Bench {len(player.bench)}"
    )


def _side_line(side: TurnSide) -> str:
    style = SOURCE_STYLES.get(side.source, "white")
    line = f"[bold]{side.player_name}[/bold] [{style}]{side.action}[/{style}]"
    if side.thinking:
        line += f" [dim]{escape(side.thinking)}[/dim]"
    if side.trash_talk:
        line += f' [italic]"{escape(side.trash_talk)}"[/italic]'
    return line


def display_turn(record: TurnRecord, match: Match | None = None) -> None:
    """Print one resolved turn."""
    console.print(f"\n[bold]Turn {record.turn}[/bold]")
    console.print(f"  {_side_line(record.player1)}")
    console.print(f"  {_side_line(record.player2)}")
    for event in record.events:
        console.print(f"  [dim]>[/dim] {escape(event)}")
    if match is not None:
        console.print(f"  {player_status_line(match.player1)}")
        console.print(f"  {player_status_line(match.player2)}")


def display_match_result(match: Match, change: RatingChange | None = None) -> None:
    """Display the final result panel."""
    if match.is_draw:
        headline = "[bold yellow]DRAW[/bold yellow]"
    else:
        headline = f"[bold green]{match.winner_name} wins![/bold green]"

    lines = [
        headline,
        "",
        f"Turns: {len(match.turns)}",
        f"Knockouts: {match.player1.name} {match.player1.knockouts} - "
        f"{match.player2.knockouts} {match.player2.name}",
    ]
    if change is not None:
        lines.append(
            f"Rating: {match.player1.name} {change.player1_delta:+d}, "
            f"{match.player2.name} {change.player2_delta:+d}"
        )

    console.print(Panel("\n".join(lines), title="Match Result", box=box.DOUBLE))


def display_simulation_results(wins: dict[str, int], total: int, average_turns: float) -> None:
    """Display the win table of a batch of simulated matches."""
    table = Table(title=f"Simulation Results ({total} matches)", box=box.ROUNDED)
    table.add_column("Team", min_width=16)
    table.add_column("Wins", justify="right")
    table.add_column("Win %", justify="right")

    for team, count in sorted(wins.items(), key=lambda item: item[1], reverse=True):
        pct = count / total * 100 if total else 0.0
        table.add_row(team, str(count), f"{pct:.1f}%")

    console.print(table)
    console.print(f"[dim]Average match length: {average_turns:.1f} turns[/dim]")
