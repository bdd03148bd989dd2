"""Roster model, combat engine, matches and ratings."""
