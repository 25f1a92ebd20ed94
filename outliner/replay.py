"""Replay a fact log into a fresh outline.

Replay is all-or-halt: facts are applied in order and the first one that
fails stops the replay with a ReplayError that names the line. Later
facts may depend on the failed one, so nothing is skipped.

Blank lines are not facts and are passed over.
"""

from typing import Iterable

from .config import Settings
from .exceptions import OutlinerError, ReplayError
from .logging_config import configure_logging, get_logger
from .reducer import ReducerEngine

logger = get_logger("replay")


def replay(
    lines: Iterable[str],
    engine: ReducerEngine | None = None,
    settings: Settings | None = None,
) -> ReducerEngine:
    """Apply every fact line in order.

    Args:
        lines: Fact lines, e.g. an open text file
        engine: Engine to reduce into (a fresh one if None)
        settings: Settings for a fresh engine, which also set the log
            level (ignored when engine is given)

    Returns:
        The engine, holding the replayed state

    Raises:
        ReplayError: On the first fact that cannot be parsed or applied;
            the original error is chained as __cause__
    """
    if engine is None:
        engine = ReducerEngine(settings=settings)
        configure_logging(engine.settings)

    applied = 0
    for line_number, line in enumerate(lines, 1):
        line = line.rstrip("\r\n")
        if not line.strip():
            continue

        try:
            engine.apply(line)
        except OutlinerError as e:
            logger.error(
                "replay_halted",
                line_number=line_number,
                error=type(e).__name__,
                applied=applied,
            )
            raise ReplayError(
                f"Replay halted at line {line_number}: {e.message}",
                line_number=line_number,
                line=line,
            ) from e
        applied += 1

    logger.info("replay_finished", applied=applied, items=len(engine.store))
    return engine
