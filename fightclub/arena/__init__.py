"""Match orchestration, matchmaking and participant registry."""
