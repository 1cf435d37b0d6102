"""Play-money prediction market: SQLite storage, share pricing, market rules, leaderboard."""

__version__ = "0.1.0"

__all__ = ["model", "cors", "logging_setup", "leaderboard", "market"]