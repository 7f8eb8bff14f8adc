from __future__ import annotations

import click
from flask import current_app


@click.group()
def invitations_cli():
    """Invitation maintenance commands."""
    pass


@invitations_cli.command("expire")
def expire_invitations():
    """Mark pending invitations past their expiry as expired. Safe to run from cron."""
    from .jobs import expire_stale_invitations

    current_app.logger.info("Expiring stale invitations via CLI")
    count = expire_stale_invitations()
    click.echo(f"Expired {count} invitation(s)")


@click.group()
def scheduler_cli():
    """Scheduler related commands."""
    pass


@scheduler_cli.command("run")
def run_scheduler():
    """Run the dedicated scheduler process (separate container or systemd service)."""
    # APScheduler is only imported by the scheduler process
    from .scheduler import run

    current_app.logger.info("Starting scheduler via CLI")
    run()
