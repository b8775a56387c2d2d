"""Domain models, chat heuristics and services."""
