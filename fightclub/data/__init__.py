"""Roster sources and result stores."""
