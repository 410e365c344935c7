"""HTTP API for the Elo Insight stats engine."""
