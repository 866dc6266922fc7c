"""Shared Typer app object, shared option types, and workspace utility."""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.aggregator import MetricsAggregator
from ..core.config import Settings
from ..core.config_loader import load_settings
from ..io.document_store import JsonDocumentStore, get_default_data_dir
from ..io.session_repository import SessionRepository

# Shared options used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-D", help="Data directory (default: $LIFTLOG_HOME or ~/.liftlog)"),
]
UserOption = Annotated[
    Optional[str],
    typer.Option("--user", "-u", help="User id (default: from settings.yaml, else 'local')"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="liftlog",
    help="Log live workouts, daily activity and personal records.",
    no_args_is_help=True,
)


@dataclass
class Workspace:
    """Store, settings and user resolved from the shared CLI options."""

    data_dir: Path
    settings: Settings
    user_id: str
    store: JsonDocumentStore

    def sessions(self) -> SessionRepository:
        return SessionRepository(self.store, self.user_id)

    def aggregator(self) -> MetricsAggregator:
        return MetricsAggregator(self.store, self.user_id, settings=self.settings)


def get_workspace(data_dir: Path | None, user: str | None = None) -> Workspace:
    """Resolve data directory, settings and user id for a command."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    settings = load_settings(data_dir)
    return Workspace(
        data_dir=data_dir,
        settings=settings,
        user_id=user or settings.user_id,
        store=JsonDocumentStore(data_dir),
    )
