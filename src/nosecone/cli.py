"""
Command-line interface for the nose cone generator.

Provides commands to generate G-code from a parameter file or a named
profile, inspect the derived geometry, and list the available shapes.
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nosecone import __version__
from nosecone.core.config import ConfigManager, NoseConeParameters, load_parameters
from nosecone.core.exceptions import NoseConeError
from nosecone.core.logging import configure_logging, get_logger
from nosecone.geometry.profiles import ShapeKind
from nosecone.pipeline import Pipeline, PipelineConfig
from nosecone.postprocessor import PostProcessorConfig
from nosecone.slicing.builder import ConeLayout

logger = get_logger(__name__)

# G-code may go to stdout, so messages go to stderr
console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Minimum log level",
)
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Also write logs to a file")
@click.pass_context
def main(ctx: click.Context, log_level: str, json_logs: bool, log_file: Optional[Path]) -> None:
    """Nose Cone Generator - spiral G-code for 3D printed rocket nose cones."""
    ctx.ensure_object(dict)
    configure_logging(
        level=log_level,
        json_output=json_logs,
        log_file=str(log_file) if log_file else None,
    )


def _resolve_parameters(params_file: Optional[Path], profile: Optional[str], config_dir: Path) -> NoseConeParameters:
    if params_file is not None and profile is not None:
        raise click.UsageError("Give either a parameters file or --profile, not both")
    if profile is not None:
        return ConfigManager(config_dir).get_profile(profile)
    if params_file is None:
        raise click.UsageError("A parameters file or --profile is required")
    return load_parameters(params_file)


# =============================================================================
# Generation
# =============================================================================


@main.command("generate")
@click.argument("params_file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Output G-code file (default: stdout)")
@click.option("--profile", "-p", help="Use a named profile from the config directory")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default="config",
    show_default=True,
    help="Configuration directory holding cones/*.yaml profiles",
)
@click.option("--no-timestamp", is_flag=True, help="Omit the generation time from the header")
@click.option(
    "--post-config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML post processor settings (feed rates, event hooks)",
)
def generate(
    params_file: Optional[Path],
    output: Optional[Path],
    profile: Optional[str],
    config_dir: Path,
    no_timestamp: bool,
    post_config: Optional[Path],
) -> None:
    """Generate G-code for a nose cone."""
    try:
        params = _resolve_parameters(params_file, profile, config_dir)
        pp_config = PostProcessorConfig.from_file(post_config) if post_config else PostProcessorConfig()
    except NoseConeError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise SystemExit(1)
    if no_timestamp:
        pp_config.include_timestamp = False

    config = PipelineConfig(
        parameters_path=str(params_file) if params_file else profile,
        parameters=params,
        output_path=str(output) if output else None,
        postprocessor=pp_config,
    )
    result = Pipeline().execute(config)

    if not result.success:
        for error in result.errors:
            console.print(f"[red]✗[/red] {escape(error)}")
        raise SystemExit(1)

    if output is None:
        click.echo(result.gcode, nl=False)
        return

    toolpath = result.toolpath
    console.print(f"[green]✓[/green] Wrote {output}")
    console.print(f"  Layers: {toolpath.total_layers}")
    console.print(f"  Filament: {toolpath.get_filament_used() / 1000:.3f} m")


# =============================================================================
# Inspection Commands
# =============================================================================


@main.command("info")
@click.argument("params_file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--profile", "-p", help="Use a named profile from the config directory")
@click.option("--config-dir", type=click.Path(file_okay=False, path_type=Path), default="config", show_default=True)
def info(params_file: Optional[Path], profile: Optional[str], config_dir: Path) -> None:
    """Show the derived geometry of a nose cone."""
    try:
        params = _resolve_parameters(params_file, profile, config_dir)
        shape = ShapeKind.parse(params.shape)
        layout = ConeLayout.from_parameters(params)
    except NoseConeError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise SystemExit(1)

    table = Table(title=f"Nose cone: {shape.value}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Shape parameter", f"{params.shape_parameter:g}")
    table.add_row("Outer diameter", f"{params.diameter:g} mm")
    table.add_row("Wall centre radius", f"{layout.radius:.3f} mm")
    table.add_row("Cone height", f"{layout.cone_height:.3f} mm")
    table.add_row("Base layers", str(layout.cylinder_layer_count))
    table.add_row("Cone layers", str(layout.cone_layer_count))
    table.add_row("Centre", f"({layout.cx:g}, {layout.cy:g})")
    table.add_row("Brim", f"{params.brim:g} mm" if params.brim is not None else "skirt")

    console.print(table)


@main.command("shapes")
def shapes() -> None:
    """List the available nose cone shapes."""
    table = Table(title="Shapes")
    table.add_column("Name", style="cyan")
    table.add_column("Parameter domain")

    for kind in ShapeKind:
        domain = kind.parameter_domain
        table.add_row(kind.value, f"[{domain[0]:g}, {domain[1]:.4g}]" if domain else "(unused)")

    console.print(table)


@main.command("profiles")
@click.option("--config-dir", type=click.Path(exists=True, file_okay=False, path_type=Path), default="config", show_default=True)
def profiles(config_dir: Path) -> None:
    """List named cone profiles."""
    try:
        config_mgr = ConfigManager(config_dir)
        names = config_mgr.list_profiles()
    except NoseConeError as e:
        console.print(f"[red]✗[/red] Failed to list profiles: {escape(str(e))}")
        raise SystemExit(1)

    if not names:
        console.print("[yellow]No cone profiles found.[/yellow]")
        return

    table = Table(title="Cone Profiles")
    table.add_column("Name", style="cyan")
    table.add_column("Shape")
    table.add_column("Diameter")

    for name in names:
        try:
            params = config_mgr.get_profile(name)
        except NoseConeError as e:
            logger.warning("profile_invalid", profile=name, error=str(e))
            table.add_row(name, "[red]invalid[/red]", "-")
            continue
        table.add_row(name, params.shape, f"{params.diameter:g} mm")

    console.print(table)


if __name__ == "__main__":
    main()
