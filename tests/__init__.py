"""Tests for fightclub."""
