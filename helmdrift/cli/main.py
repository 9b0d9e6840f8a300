"""``helmdrift`` command."""

from __future__ import annotations

import asyncio

import click

from helmdrift import __version__
from helmdrift.client import ClusterHelmClient
from helmdrift.cluster.kube import KubeClusterReader
from helmdrift.config import load_config, validate_driver
from helmdrift.detector import DriftDetector
from helmdrift.errors import DriftError
from helmdrift.models.config import HelmDriftConfig
from helmdrift.observability.logging import LOG_FORMATS, bind_run_context, get_logger, setup_logging


@click.command(name="helmdrift")
@click.option("-r", "--release", "release_name", required=True, help="Name of the HelmRelease.")
@click.option(
    "-n", "--namespace", default="default", show_default=True, help="Namespace of the HelmRelease."
)
@click.option(
    "--storage-namespace",
    default=None,
    help="Namespace holding the Helm release storage. Overrides the HelmRelease.",
)
@click.option(
    "--no-helmrelease",
    is_flag=True,
    default=False,
    help="Compare a plain Helm release without reading a HelmRelease.",
)
@click.option("--driver", default=None, help="Helm storage driver (secret or configmap).")
@click.option("--context", "kube_context", default=None, help="Kubeconfig context to use.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Diagnostic log level (logs go to stderr).",
)
@click.option(
    "--log-format",
    type=click.Choice(list(LOG_FORMATS), case_sensitive=False),
    default=None,
    help="Diagnostic log format.",
)
@click.version_option(__version__, prog_name="helmdrift")
def cli(
    release_name: str,
    namespace: str,
    storage_namespace: str | None,
    no_helmrelease: bool,
    driver: str | None,
    kube_context: str | None,
    log_level: str | None,
    log_format: str | None,
) -> None:
    """Report drift between a Helm release's manifest and the live cluster."""
    try:
        config = load_config()
        if driver is not None:
            config.storage.driver = validate_driver(driver)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    if kube_context is not None:
        config.kube.context = kube_context
    if log_level is not None:
        config.log.level = log_level.lower()
    if log_format is not None:
        config.log.format = log_format.lower()

    setup_logging(config.log.level, config.log.format)

    exit_code = asyncio.run(
        _run(
            config,
            release_name=release_name,
            namespace=namespace,
            storage_namespace=storage_namespace,
            use_helmrelease=not no_helmrelease,
        )
    )
    if exit_code:
        raise SystemExit(exit_code)


async def _run(
    config: HelmDriftConfig,
    *,
    release_name: str,
    namespace: str,
    storage_namespace: str | None,
    use_helmrelease: bool,
) -> int:
    bind_run_context(release_name, namespace)
    log = get_logger("cli")
    try:
        reader = await KubeClusterReader.create(
            context=config.kube.context,
            request_timeout=config.kube.request_timeout,
        )
    except DriftError as exc:
        log.error("failed to initialize kubernetes client", error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        return 1

    async with reader:
        detector = DriftDetector(ClusterHelmClient(reader, config), sink=click.echo)
        try:
            await detector.run(
                release_name,
                namespace,
                use_helmrelease=use_helmrelease,
                storage_namespace=storage_namespace,
            )
        except DriftError as exc:
            log.error("drift detection failed", error=str(exc), error_type=type(exc).__name__)
            click.echo(f"Error: {exc}", err=True)
            return 1
    return 0
