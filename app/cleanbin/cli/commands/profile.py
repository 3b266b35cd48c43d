"""Profile commands.

Provides commands to create and display the cleanup profile.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from cleanbin.core.paths import ensure_config_dir, get_profile_path
from cleanbin.core.profile import ProfileError, default_profile, require_profile, save_profile
from cleanbin.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Create and inspect cleanup profiles.",
    no_args_is_help=True,
)

PathOption = Annotated[
    Path | None,
    typer.Option("--path", "-p", help="Profile file (default: user profile)."),
]


@app.command()
def init(
    path: PathOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing profile."),
    ] = False,
) -> None:
    """Write the default profile to disk."""
    profile_path = path or get_profile_path()
    if profile_path.exists() and not force:
        print_error(f"Profile already exists: {profile_path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    if path is None:
        try:
            ensure_config_dir()
        except RuntimeError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

    try:
        saved = save_profile(default_profile(), profile_path)
    except ProfileError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Profile created: {saved}")


@app.command()
def show(path: PathOption = None) -> None:
    """Display the active profile."""
    profile = require_profile(path)

    table = Table(title=f"Profile: {profile.name}", show_header=False, border_style="border")
    table.add_column("Setting", style="bold_header")
    table.add_column("Value", style="text")
    for name, value in profile.model_dump().items():
        if isinstance(value, list):
            value = ", ".join(value) or "-"
        table.add_row(name, str(value))
    console.print(table)
