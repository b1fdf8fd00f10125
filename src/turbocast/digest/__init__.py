"""Plain-text output for forecasts and reports."""
