"""CLI sub-commands, registered on the shared Typer app at import time."""
