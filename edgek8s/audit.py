"""User-facing build messages.

Audit messages are meant to be read by the person running the build; they are
printed to stdout and optionally mirrored to the diagnostic log. Debug output
belongs in the regular loggers instead.
"""
import logging
from typing import Callable, Optional

import typer

logger = logging.getLogger("edgek8s.audit")

LINE_LENGTH = 40

MESSAGE_SUCCESS = "SUCCESS"
MESSAGE_SKIPPED = "SKIPPED"
MESSAGE_FAILED = "FAILED "  # trailing space keeps the status column aligned


def _audit(message: str, log_func: Optional[Callable[[str], None]] = None) -> None:
    typer.echo(message)
    if log_func is not None:
        log_func(message)


def audit(message: str) -> None:
    _audit(message)


def audit_info(message: str) -> None:
    _audit(message, logger.info)


def audit_error(message: str) -> None:
    _audit(message, logger.error)


def format_component_status(component: str, status: str) -> str:
    """Format a line such as ``Kubernetes ............. [SUCCESS]``."""
    name = component.title()
    # 2 spaces around the dots, 9 for the bracketed status
    dots = "." * max(LINE_LENGTH - (len(name) + 2 + 9), 1)
    return f"{name} {dots} [{status}]"


def component_successful(component: str) -> None:
    audit(format_component_status(component, MESSAGE_SUCCESS))


def component_skipped(component: str) -> None:
    audit(format_component_status(component, MESSAGE_SKIPPED))


def component_failed(component: str) -> None:
    audit(format_component_status(component, MESSAGE_FAILED))
