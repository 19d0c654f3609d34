"""Helpers shared by the CLI command modules."""

from __future__ import annotations

from typing import Callable, TypeVar

import click

from ims.application.retry import run_with_retry
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import settings

T = TypeVar("T")


def execute(fn: Callable[[], T]) -> T:
    """Run a handler call, retrying store conflicts, and report domain errors."""
    try:
        return run_with_retry(fn, settings().MAX_CONFLICT_RETRIES)
    except DomainException as exc:
        raise click.ClickException(str(exc))
