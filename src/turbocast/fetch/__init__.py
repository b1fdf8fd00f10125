"""Upstream data fetching: upper-air forecasts, pilot reports, hazard areas."""
