"""fightclub - turn-based creature battles between decision-making agents."""

__version__ = "0.1.0"
