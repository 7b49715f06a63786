"""HTTP API for TimeHatch."""
