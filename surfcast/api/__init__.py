"""HTTP API for spot forecasts."""
