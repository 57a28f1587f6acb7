"""Logging helpers for timing pipeline stages."""

import contextlib
import time


def format_duration(duration_ms):
    """Format duration as human-readable string (e.g. "15.2s", "250ms")."""
    if duration_ms >= 1000:
        return f"{duration_ms / 1000:.1f}s"
    else:
        return f"{duration_ms}ms"


def format_context(**context):
    """Format keyword context as "key=value" pairs, skipping None values."""
    return " ".join(f"{key}={value}" for key, value in context.items() if value is not None)


@contextlib.contextmanager
def log_phase(logger, phase_name, **context_kwargs):
    """Context manager for logging phase timing at DEBUG level.

    Usage:
        with log_phase(logger, "Gaussian pyramid", octaves=8):
            pyramid = generate_gaussian_pyramid(img)

    Output at DEBUG level:
        Gaussian pyramid... (octaves=8)
        Gaussian pyramid done (120ms)
    """
    context = format_context(**context_kwargs)
    context_str = f" ({context})" if context else ""

    logger.debug(f"{phase_name}...{context_str}")
    start_time = time.time()

    try:
        yield
    finally:
        duration_ms = int((time.time() - start_time) * 1000)
        duration_str = format_duration(duration_ms)
        logger.debug(f"{phase_name} done ({duration_str})")
