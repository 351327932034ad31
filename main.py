"""bicep-deploy CLI entrypoint."""
import os
from typing import Optional

import typer
from rich.markup import escape

from bicep_deploy.actions import core
from bicep_deploy.actions.core import console
from bicep_deploy.config.parser import ConfigParser
from bicep_deploy.deploy.dispatcher import execute
from bicep_deploy.deploy.errors import ConfigError
from bicep_deploy.files.parser import FileParser, ParsedFiles

app = typer.Typer(help="Bicep Deploy - deploy Bicep/ARM templates as deployments or deployment stacks")


@app.command("run")
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML file of action inputs; INPUT_* environment variables are used otherwise"),
    az_cli: str = typer.Option("az", "--az-cli", help="Azure CLI executable used to build Bicep files"),
    debug: bool = typer.Option(False, "--debug", help="Print verbose debug information including Azure CLI commands")
):
    """Run the configured create, validate, what-if or delete operation."""
    if debug:
        os.environ["RUNNER_DEBUG"] = "1"

    try:
        action_config = ConfigParser.load(config)
        if action_config.type == "deploymentStack" and action_config.operation == "delete":
            files = ParsedFiles()
        else:
            files = FileParser(az_cli).parse(action_config.files)
    except (ConfigError, FileNotFoundError) as e:
        core.set_failed(str(e))
        console.print(f"[bold red]Error: {escape(str(e))}[/]")
        raise typer.Exit(code=1)

    console.print(
        f"[bold blue]Running {action_config.type} {action_config.operation} "
        f"'{escape(action_config.name)}' at {action_config.scope.type} scope...[/]"
    )
    try:
        execute(action_config, files)
    except Exception as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/]")
        raise typer.Exit(code=1)

    if core.has_failed():
        raise typer.Exit(code=1)
    console.print(f"[green]{action_config.operation} completed successfully[/]")


@app.command("validate-config")
def validate_config(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML file of action inputs; INPUT_* environment variables are used otherwise"),
):
    """Parse the action inputs and print the resolved configuration."""
    try:
        action_config = ConfigParser.load(config)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/]")
        raise typer.Exit(code=1)
    core.log_info_raw(action_config.model_dump_json(indent=2))


if __name__ == "__main__":
    app()
