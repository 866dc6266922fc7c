"""liftlog: live workout logging, daily activity metrics and progress records."""

__version__ = "0.1.0"
