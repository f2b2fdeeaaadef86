"""gakun command line interface.

Subcommands:
  - add <profile> -h <host> -k <key>
  - use <profile> -h <host>
  - ls
  - detach (alias: d)

Exit codes:
  0: success
  1: any reported error
"""

import configparser
import logging
from typing import NoReturn, Optional

import click

from .controllers.profile_controller import ProfileController
from .errors import GakunError
from .logging_setup import setup_logging
from .settings import load_settings, registry_path, ssh_config_path

# -h is taken by --host
CONTEXT_SETTINGS = dict(help_option_names=["--help"])


class AliasedGroup(click.Group):
    """Group that also resolves short command aliases."""

    aliases = {"d": "detach"}

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(self, ctx, args):
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name if cmd is not None else None, cmd, args


def _fail(exc: Exception) -> NoReturn:
    logging.getLogger(__name__).debug("Command failed", exc_info=exc)
    click.echo(f"Error: {type(exc).__name__}: {exc}", err=True)
    raise SystemExit(1)


@click.group(cls=AliasedGroup, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="gakun")
@click.option(
    "--registry",
    envvar="GAKUN_REGISTRY",
    type=click.Path(dir_okay=False),
    help="Profile registry file (default from settings).",
)
@click.option(
    "--ssh-config",
    envvar="GAKUN_SSH_CONFIG",
    type=click.Path(dir_okay=False),
    help="SSH client config to manage (default from settings).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    registry: Optional[str],
    ssh_config: Optional[str],
    verbose: bool,
) -> None:
    """SSH key manager: switch the key used per host from named profiles."""
    try:
        cfg = load_settings()
    except (configparser.Error, OSError) as exc:
        _fail(exc)
    try:
        setup_logging(cfg, verbose)
    except OSError as exc:
        _fail(exc)
    # Tests may inject their own controller
    if ctx.obj is None:
        ctx.obj = ProfileController(
            registry or registry_path(cfg),
            ssh_config or ssh_config_path(cfg),
        )


@cli.command("add")
@click.argument("profile")
@click.option("-h", "--host", required=True, help="Host to configure.")
@click.option("-k", "--key", required=True, help="Path to SSH key.")
@click.pass_obj
def add_cmd(controller: ProfileController, profile: str, host: str, key: str) -> None:
    """Add host and key to a profile.

    Example: 'gakun add work -h gitlab.com -k ~/.ssh/id_rsa_work'
    """
    try:
        entry = controller.add(profile, host, key)
    except (GakunError, ValueError, OSError) as exc:
        _fail(exc)
    click.echo(f"Added {entry.host} → {entry.identity_file} to profile {profile} ✓")


@cli.command("use")
@click.argument("profile")
@click.option("-h", "--host", required=True, help="Host to configure.")
@click.pass_obj
def use_cmd(controller: ProfileController, profile: str, host: str) -> None:
    """Use SSH key for certain host.

    Example: 'gakun use work -h gitlab.com'
    """
    try:
        entry = controller.use(profile, host)
    except (GakunError, OSError) as exc:
        _fail(exc)
    click.echo(f"Key {entry.identity_file} is now active for {entry.host} ✓")


@cli.command("ls")
@click.pass_obj
def ls_cmd(controller: ProfileController) -> None:
    """List profiles."""
    try:
        profiles, active = controller.overview()
    except (GakunError, OSError) as exc:
        _fail(exc)
    if not profiles:
        click.echo("No profiles yet. Add one with gakun add.")
        return
    for name, hosts in profiles:
        suffix = " (active)" if name == active else ""
        click.echo(f"\n{name}:{suffix}")
        for entry in hosts:
            click.echo(f"   {entry.host} → {entry.identity_file}")


@cli.command("detach")
@click.pass_obj
def detach_cmd(controller: ProfileController) -> None:
    """Detach gakun: remove the gakun-managed section from the SSH config."""
    try:
        changed = controller.detach()
    except (GakunError, OSError) as exc:
        _fail(exc)
    if changed:
        click.echo(f"Gakun section removed from {controller.ssh_config_file} ✓")
    else:
        click.echo(f"No gakun section found in {controller.ssh_config_file}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
