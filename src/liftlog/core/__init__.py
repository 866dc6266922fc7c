"""Workout session engine, metrics aggregation and analytics."""
