import logging

import typer

from edgek8s.commands import build
from edgek8s.config import get_settings
from edgek8s.logging import setup_logger

app = typer.Typer()

app.add_typer(build.app, name="build")


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """edgek8s - Kubernetes configuration for edge images."""
    settings = get_settings()
    level = logging.DEBUG if debug else getattr(logging, settings.logging.level, logging.INFO)

    setup_logger(
        "edgek8s",
        level=level,
        log_file=settings.logging.file,
        max_size_mb=settings.logging.max_size_mb,
        backup_count=settings.logging.backup_count,
    )
    if debug:
        logging.getLogger("edgek8s").debug("Debug mode enabled")
    else:
        # Disable debug logging for noisy libraries
        logging.getLogger('urllib3').setLevel(logging.WARNING)


if __name__ == "__main__":
    app()
