"""
Main CLI application for depsponsor.

Defines the Typer application structure and command routing.
"""
import typer

from depsponsor.cli.commands.sponsor import sponsor_command


app = typer.Typer(help="depsponsor - find sponsorable projects among your Cargo dependencies")

app.command("sponsor", help="List dependencies that accept sponsorship through GitHub.")(sponsor_command)


# Make sponsor the default command when no subcommand is specified
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """depsponsor - find sponsorable projects among your Cargo dependencies.

    Run 'depsponsor sponsor --manifest-path path/to/Cargo.toml' to check a project.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(
            sponsor_command,
            manifest_path=".",
            output=None,
            top_level_only=False,
            concurrency=None,
            show_all=False,
            timeout=None,
            config_path=None,
            verbose=False,
        )
