"""Orchestrator: runs one drift detection pass for one release.

Sequence: HelmRelease (overrides, ignore rules) -> last release ->
diff against the cluster -> report. Any stage failure aborts the run
before anything is written to the report sink.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from helmdrift.client import HelmClient
from helmdrift.errors import DriftError
from helmdrift.models.declared import IgnoreRule
from helmdrift.models.diff import DiffSet
from helmdrift.observability.logging import get_logger
from helmdrift.report import render_lines

ReportSink = Callable[[str], None]


class DriftDetector:
    """Drives the drift pipeline against a HelmClient.

    The report is written to *sink* one line at a time; diagnostics go to
    *logger*.
    """

    def __init__(
        self,
        client: HelmClient,
        sink: ReportSink,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._client = client
        self._sink = sink
        self._log = logger or get_logger("detector")

    async def run(
        self,
        release_name: str,
        namespace: str,
        *,
        use_helmrelease: bool = True,
        storage_namespace: str | None = None,
    ) -> DiffSet:
        """Detect and report drift of *release_name*.

        With ``use_helmrelease`` the HelmRelease *namespace*/*release_name*
        supplies the release name, storage namespace and ignore rules.
        Without it, no ignore rules apply and a missing
        *storage_namespace* is discovered by scanning the cluster.
        An explicit *storage_namespace* wins in both modes.

        Raises:
            DriftError: any stage failed; the error keeps its kind.
        """
        log = self._log.bind(release=release_name, namespace=namespace)
        ignore_rules: tuple[IgnoreRule, ...] = ()
        report_namespace = namespace
        scope: str | None = storage_namespace

        if use_helmrelease:
            try:
                declared = await self._client.get_helm_release(release_name, namespace)
            except DriftError as exc:
                raise exc.wrap(f"failed to get HelmRelease {namespace}/{release_name}") from exc
            release_name = declared.resolve_release_name(release_name)
            scope = storage_namespace or declared.resolve_storage_namespace(namespace)
            ignore_rules = declared.ignore_rules
            log = log.bind(release=release_name)
            log.debug("helmrelease resolved", storage_namespace=scope, ignore_rules=len(ignore_rules))

        try:
            record = await self._client.get_release(release_name, scope)
        except DriftError as exc:
            raise exc.wrap(f"failed to get Helm release {release_name}") from exc

        if not use_helmrelease:
            report_namespace = record.namespace or namespace

        try:
            diff_set = await self._client.diff_release(record, ignore_rules)
        except DriftError as exc:
            raise exc.wrap("failed to detect drift") from exc

        log.info(
            "drift detection finished",
            version=record.version,
            drifted=diff_set.has_changes(),
            entries=len(diff_set),
        )
        for line in render_lines(diff_set, release_name, report_namespace):
            self._sink(line)
        return diff_set
