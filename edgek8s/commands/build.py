import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer

from edgek8s import audit
from edgek8s.config import get_settings
from edgek8s.errors import KubernetesError
from edgek8s.modules.kubernetes import (
    ArtefactDownloader,
    Arch,
    BuildContext,
    configure_kubernetes,
    extract_cni,
    load_config,
    load_definition,
)
from edgek8s.modules.kubernetes.cluster import SERVER_CONFIG_FILE
from edgek8s.utils.cache import ArtefactCache

logger = logging.getLogger("edgek8s.commands.build")

app = typer.Typer()


def _fail(stage: str, error: Exception) -> NoReturn:
    audit.audit_error(f"Build failed: {stage}: {error}")
    logger.debug(f"{stage} failed", exc_info=error)
    raise typer.Exit(code=1)


@app.command("kubernetes")
def build_kubernetes(
    definition: Path = typer.Option(..., "--definition", help="Image definition file containing a kubernetes section"),
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", help="Directory holding server.yaml / agent.yaml"),
    output: Path = typer.Option(..., "--output", help="Combustion output directory"),
    arch: Arch = typer.Option(Arch.X86_64, "--arch", help="Target architecture"),
    skip_download: bool = typer.Option(False, "--skip-download", help="Do not fetch release artefacts"),
):
    """Generate the Kubernetes first boot configuration of an image."""
    settings = get_settings()

    try:
        k8s = load_definition(definition)
    except KubernetesError as e:
        _fail("loading definition", e)

    cache = ArtefactCache(settings.download.cache_dir) if settings.download.cache_dir else None
    downloader = ArtefactDownloader(
        cache=cache,
        release_url=settings.download.rke2_release_url,
        timeout=settings.download.timeout,
    )

    ctx = BuildContext(
        definition=k8s,
        config_dir=config_dir,
        combustion_dir=output,
        arch=arch,
        downloader=downloader,
        skip_download=skip_download,
    )

    try:
        scripts = configure_kubernetes(ctx)
    except (KubernetesError, OSError) as e:
        _fail("configuring kubernetes", e)

    for script in scripts:
        typer.echo(f"Wrote {output / script}")


@app.command("cni")
def show_cni(
    config_dir: Path = typer.Option(..., "--config-dir", help="Directory holding server.yaml"),
):
    """Print the primary CNI and multus selection of a server configuration."""
    try:
        cni, multus_enabled = extract_cni(load_config(config_dir / SERVER_CONFIG_FILE))
    except KubernetesError as e:
        _fail("reading CNI", e)

    typer.echo(f"cni: {cni}")
    typer.echo(f"multus: {'enabled' if multus_enabled else 'disabled'}")
