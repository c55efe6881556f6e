"""Taichi runtime initialisation.

Batch BRDF evaluation (``BRDF.evaluate_many``) runs Taichi kernels. Taichi
must be initialised exactly once per process before the first kernel launch;
repeated ``ti.init()`` calls reset the runtime and can crash when fields are
alive, so every caller goes through ``init_backend()``.

Kernels always run on the CPU architecture with 64-bit default floats so that
batch results agree with the scalar ``f()`` path to within rounding.

Taichi compiles kernels and materialises its runtime only on the thread that
called ``ti.init()``. Modules that define kernels register a warm-up with
``register_warmup``; ``init_backend()`` runs the pending warm-ups whenever it
is called on that thread, so later launches from worker threads only execute
already compiled kernels. Call ``init_backend()`` before handing work to a
thread pool.

Example:
    >>> from brdfkit.core.backend import init_backend
    >>> init_backend()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

import taichi as ti

LOGGER = logging.getLogger(__name__)

_init_lock = threading.Lock()
_initialized = False
_owner_thread: int | None = None
_pending_warmups: list[Callable[[], None]] = []

# Kernel launches are serialised: the Taichi runtime is process-global
kernel_lock = threading.RLock()


def register_warmup(func: Callable[[], None]) -> Callable[[], None]:
    """Register a callable that compiles a kernel with a tiny launch.

    Usable as a decorator. The warm-up runs on the next ``init_backend()``
    call made from the thread that owns the Taichi runtime.
    """
    with _init_lock:
        _pending_warmups.append(func)
    return func


def init_backend(*, offline_cache: bool = True) -> None:
    """Initialise Taichi on the CPU with f64 defaults, once.

    Also compiles every registered kernel that has not been compiled yet,
    provided the caller is the thread that initialised Taichi.

    Args:
        offline_cache: Whether Taichi may cache compiled kernels on disk.
    """
    global _initialized, _owner_thread
    with _init_lock:
        if not _initialized:
            ti.init(
                arch=ti.cpu,
                default_fp=ti.f64,
                offline_cache=offline_cache,
                log_level=ti.WARN,
            )
            _initialized = True
            _owner_thread = threading.get_ident()

        if _pending_warmups and threading.get_ident() == _owner_thread:
            warmups = list(_pending_warmups)
            _pending_warmups.clear()
            with kernel_lock:
                for warmup in warmups:
                    LOGGER.debug("Compiling %s", warmup.__name__)
                    warmup()


def is_initialized() -> bool:
    """Return True once ``init_backend()`` has run."""
    return _initialized


def pending_warmups() -> int:
    """Number of registered kernels not compiled yet."""
    return len(_pending_warmups)
