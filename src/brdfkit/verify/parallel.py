"""Verify many models concurrently."""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Iterable, Mapping

from brdfkit.config import EnergyMode
from brdfkit.core.backend import init_backend
from brdfkit.materials.base import BRDF
from brdfkit.verify.results import VerificationResult
from brdfkit.verify.verifier import PlausibilityVerifier

LOGGER = logging.getLogger(__name__)


def verify_many(
    models: Mapping[str, BRDF] | Iterable[BRDF],
    verifier: PlausibilityVerifier | None = None,
    *,
    num_incoming: int | None = None,
    samples_per_test: int | None = None,
    mode: EnergyMode | str | None = None,
    max_workers: int | None = None,
) -> dict[str, VerificationResult]:
    """Run ``is_physically_based`` for each model in a thread pool.

    Each task lets the verifier create its own fixed-seed samplers, so the
    result for a model does not depend on scheduling or on the other models.
    Call this from the thread that first initialised Taichi (normally the
    main thread) so the batch kernels are compiled before the pool starts.

    Args:
        models: Alias to model mapping, or models keyed by their ``name``.
        verifier: Verifier shared by all tasks (default config if None).
        num_incoming: Passed to ``is_physically_based``.
        samples_per_test: Passed to ``is_physically_based``.
        mode: Passed to ``is_physically_based``.
        max_workers: Thread pool size (executor default if None).

    Returns:
        Results keyed by alias, in input order.

    Raises:
        Exception: The first exception raised by a task, after all tasks
            finished.
    """
    if isinstance(models, Mapping):
        items = list(models.items())
    else:
        items = [(model.name, model) for model in models]
    if not items:
        return {}

    verifier = verifier or PlausibilityVerifier()
    # Kernels compile on the thread that owns the Taichi runtime, not in workers
    init_backend()
    LOGGER.debug("Verifying %d model(s) with up to %s workers", len(items), max_workers)

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            alias: executor.submit(
                verifier.is_physically_based,
                model,
                num_incoming,
                samples_per_test,
                mode,
            )
            for alias, model in items
        }
        concurrent.futures.wait(futures.values())

    results: dict[str, VerificationResult] = {}
    for alias, future in futures.items():
        try:
            results[alias] = future.result()
        except Exception:
            LOGGER.exception("Verification of %r failed", alias)
            raise
    return results
