"""Sports edge: win-probability modeling, market edges and backtests."""

__version__ = "0.1.0"
