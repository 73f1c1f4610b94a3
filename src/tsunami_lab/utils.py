"""
utils.py

Small helpers shared by the io and setups packages.

The public helpers:
- `safe_log_exception(msg, exc, **ctx)` : logs exceptions robustly
- `destride(buffer, stride, nx, ny)` : copies a strided solver buffer into a packed (ny, nx) array
- `round_half_up(value)` : rounds a non-negative real to the nearest integer

"""

from typing import Any
import sys
import math
import logging
import numpy as np

logger = logging.getLogger(__name__)


def safe_log_exception(msg: str, exc: Exception, **ctx: Any) -> None:
    """Log an exception robustly.

    Attempts to call `logger.exception`. If logging fails for any reason,
    falls back to writing a compact message to `sys.stderr`.
    """
    try:
        if ctx:
            ctx_s = ' | '.join(f"{k}={v!r}" for k, v in ctx.items())
            logger.exception('%s | %s | %s', msg, exc, ctx_s)
        else:
            logger.exception('%s | %s', msg, exc)
    except Exception:
        try:
            sys.stderr.write(f'LOGGING FAILURE: {msg} {exc}\n')
        except Exception:
            pass


def destride(buffer: Any, stride: int, nx: int, ny: int) -> np.ndarray:
    """Copy a strided field into a tightly packed row-major array.

    Cell (ix, iy) is read from ``buffer[iy * stride + ix]`` and lands at
    ``out[iy, ix]``. Padding or ghost columns beyond ``nx`` in each row are
    skipped. The result is always a fresh copy, so the caller may keep
    mutating ``buffer`` once this returns.

    Raises ValueError when the stride is narrower than the grid or the
    buffer is too short to hold ``ny`` rows.
    """
    nx = int(nx)
    ny = int(ny)
    stride = int(stride)
    if nx <= 0 or ny <= 0:
        raise ValueError(f"grid must be non-empty, got nx={nx}, ny={ny}")
    if stride < nx:
        raise ValueError(f"stride {stride} is smaller than nx {nx}")

    flat = np.asarray(buffer).reshape(-1)
    needed = (ny - 1) * stride + nx
    if flat.size < needed:
        raise ValueError(f"buffer holds {flat.size} values, need at least {needed} for stride {stride}")

    idx = np.arange(ny)[:, None] * stride + np.arange(nx)[None, :]
    return flat[idx]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive input."""
    return int(math.floor(value + 0.5))
