"""Registry-wide convention validation.

Runs the ordered rule set from ``layerlint.lib.rules`` over every model and
collects all violations. Validation never stops at the first bad model.

Models are independent, so the work can be split across a thread pool. Each
worker fills its own list; lists are concatenated in chunk order, so the
result is the same for any worker count.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Sequence, Tuple

from layerlint.lib.descriptors import ModelDescriptor
from layerlint.lib.registry import ModelRegistry
from layerlint.lib.report import Violation
from layerlint.lib.rules import RULES, Rule, validate_model

logger = logging.getLogger(__name__)

__all__ = ["chunk_models", "validate_models", "validate_registry"]


def chunk_models(
    models: Sequence[ModelDescriptor],
    chunks: int,
) -> List[Sequence[ModelDescriptor]]:
    """Split models into at most ``chunks`` contiguous, non-empty slices."""
    if not models:
        return []
    chunks = max(1, min(chunks, len(models)))
    size, remainder = divmod(len(models), chunks)

    result: List[Sequence[ModelDescriptor]] = []
    start = 0
    for i in range(chunks):
        end = start + size + (1 if i < remainder else 0)
        result.append(models[start:end])
        start = end
    return result


def validate_models(
    models: Sequence[ModelDescriptor],
    rules: Tuple[Rule, ...] = RULES,
) -> List[Violation]:
    """Validate a slice of models into a local list."""
    violations: List[Violation] = []
    for model in models:
        violations.extend(validate_model(model, rules))
    return violations


def validate_registry(
    registry: ModelRegistry,
    workers: int = 1,
    rules: Tuple[Rule, ...] = RULES,
) -> List[Violation]:
    """Validate every model in the registry.

    Args:
        registry: Loaded registry
        workers: Number of worker threads (1 or less runs inline)
        rules: Ordered rule set

    Returns:
        Violations in registry order, rule order within each model
    """
    models = registry.models
    if workers <= 1 or len(models) <= 1:
        return validate_models(models, rules)

    chunks = chunk_models(models, workers)
    logger.debug("Validating %d models across %d workers", len(models), len(chunks))

    results: Dict[int, List[Violation]] = {}
    with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
        future_to_chunk = {
            executor.submit(validate_models, chunk, rules): i
            for i, chunk in enumerate(chunks)
        }
        for future in as_completed(future_to_chunk):
            results[future_to_chunk[future]] = future.result()

    violations: List[Violation] = []
    for i in range(len(chunks)):
        violations.extend(results[i])
    return violations
