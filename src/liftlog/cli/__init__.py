"""Command-line interface for liftlog."""
