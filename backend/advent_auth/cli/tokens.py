"""Flask CLI commands for refresh token housekeeping."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import click
from flask.cli import with_appcontext

from advent_auth.core.security import get_components

LOGGER = logging.getLogger(__name__)


def _parse_as_of(value: str | None) -> datetime:
    """Parse ``--as-of`` (ISO 8601); naive values are read as UTC. Defaults to now."""
    if not value:
        return datetime.now(UTC)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"not an ISO 8601 timestamp: {value!r}") from exc
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh token maintenance commands."""


@tokens_cli.command("purge-expired")
@click.option("--as-of", "as_of", default=None, help="Cutoff timestamp (ISO 8601, default: now).")
@with_appcontext
def purge_expired(as_of: str | None) -> None:
    """Delete refresh token records that expired before the cutoff.

    Meant to be scheduled externally (cron, k8s CronJob).
    """
    cutoff = _parse_as_of(as_of)
    deleted = get_components().refresh_store.purge_expired(cutoff)
    LOGGER.info("tokens.purge_expired", extra={"deleted": deleted})
    click.echo(f"Purged {deleted} expired refresh token(s) as of {cutoff.isoformat()}.")
