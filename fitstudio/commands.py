import click
from flask.cli import with_appcontext

from fitstudio.services.booking_service import BookingService


@click.command('expire-waitlist')
@with_appcontext
def expire_waitlist_command():
    """
    Expire notified waitlist entries past their response deadline
    and offer the seat to the next waiting user.

    Run this command periodically (cron job or scheduler)

    Usage: flask --app fitstudio expire-waitlist
    """
    click.echo("Checking for overdue waitlist entries...")
    expired = BookingService.expire_waitlist_entries()

    if expired:
        click.echo(f"Expired {len(expired)} waitlist entr{'y' if len(expired) == 1 else 'ies'}")
    else:
        click.echo("No waitlist entries to expire")


@click.command('reconcile-bookings')
@with_appcontext
def reconcile_bookings_command():
    """Recount active bookings and fix any drifted class counters."""
    changed = BookingService.reconcile_counters()

    for session_id, (old, new) in changed.items():
        click.echo(f"Class {session_id}: {old} -> {new}")
    click.echo(f"{len(changed)} counter(s) corrected")


def register_commands(app):
    app.cli.add_command(expire_waitlist_command)
    app.cli.add_command(reconcile_bookings_command)
