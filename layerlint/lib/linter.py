"""Lint pipeline: load -> validate -> graph check -> report.

Each run is stateless. The same registry always produces the same report.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from layerlint.lib.config_loader import PathLike, load_registry
from layerlint.lib.errors import StructuralError
from layerlint.lib.graph import UtilityPolicy, check_graph
from layerlint.lib.observability import get_structlog_logger, time_stage
from layerlint.lib.registry import ModelInput, ModelRegistry, SourceInput, build_registry
from layerlint.lib.report import LintReport, Violation
from layerlint.lib.settings import LintSettings
from layerlint.lib.validate import validate_registry

logger = get_structlog_logger(__name__)

__all__ = ["lint_definitions", "lint_paths", "lint_registry"]


def _resolve(
    settings: Optional[LintSettings],
    workers: Optional[int],
    policy: Optional[UtilityPolicy],
) -> Tuple[int, UtilityPolicy]:
    if workers is None or policy is None:
        settings = settings or LintSettings()
        if workers is None:
            workers = settings.workers
        if policy is None:
            policy = settings.utility_policy
    return workers, policy


def lint_registry(
    registry: ModelRegistry,
    settings: Optional[LintSettings] = None,
    *,
    workers: Optional[int] = None,
    policy: Optional[UtilityPolicy] = None,
    timings: Optional[Dict[str, float]] = None,
) -> LintReport:
    """Validate every model and check the reference graph.

    Args:
        registry: Loaded registry
        settings: Lint settings (read from the environment when omitted)
        workers: Overrides ``settings.workers``
        policy: Overrides ``settings.utility_policy``
        timings: Optional dict that receives per-stage durations

    Returns:
        LintReport with validation findings first, then graph findings
    """
    workers, policy = _resolve(settings, workers, policy)
    timings = timings if timings is not None else {}

    logger.info(
        "lint_started",
        models=len(registry.models),
        sources=len(registry.sources),
        workers=workers,
    )

    violations: List[Violation] = []
    with time_stage(timings, "validate"):
        violations.extend(validate_registry(registry, workers=workers))
    with time_stage(timings, "graph"):
        violations.extend(check_graph(registry, policy=policy, workers=workers))

    report = LintReport(violations)

    stage_fields: Dict[str, Any] = {f"{stage}_seconds": secs for stage, secs in timings.items()}
    logger.info(
        "lint_completed",
        passed=report.passed,
        errors=len(report.errors),
        warnings=len(report.warnings),
        **stage_fields,
    )
    return report


def lint_definitions(
    models: Iterable[ModelInput],
    sources: Iterable[SourceInput] = (),
    settings: Optional[LintSettings] = None,
    **kwargs: Any,
) -> LintReport:
    """Build a registry from in-memory definitions and lint it.

    Raises:
        DuplicateNameError: If two definitions share a name
        MalformedDescriptorError: If a definition lacks a name or layer
    """
    timings: Dict[str, float] = {}
    try:
        with time_stage(timings, "load"):
            registry = build_registry(models, sources)
    except StructuralError as e:
        logger.error("lint_aborted", **e.to_dict())
        raise
    return lint_registry(registry, settings, timings=timings, **kwargs)


def lint_paths(
    paths: Iterable[PathLike],
    settings: Optional[LintSettings] = None,
    **kwargs: Any,
) -> LintReport:
    """Load YAML definitions from files or directories and lint them.

    Raises:
        DefinitionFileError: If a file is missing or not valid YAML
        DuplicateNameError: If two definitions share a name
        MalformedDescriptorError: If a definition lacks a name or layer
    """
    paths = list(paths)
    timings: Dict[str, float] = {}
    try:
        with time_stage(timings, "load"):
            registry = load_registry(paths)
    except StructuralError as e:
        logger.error("lint_aborted", paths=[str(p) for p in paths], **e.to_dict())
        raise
    return lint_registry(registry, settings, timings=timings, **kwargs)
