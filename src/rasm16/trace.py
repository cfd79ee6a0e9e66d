"""
Pipeline Tracing
================

Each pipeline stage can report what it produced through an optional
trace hook carried on the AssemblyContext. A hook is any callable that
accepts a TraceEvent; when no hook is installed the stages skip event
construction entirely.

logging_trace_hook() returns a hook that renders events to a logger in
a listing style:

    Expanded constants
    1       CO $0001,FFF0
    2
    ...
    Calculated addresses
    0000    main.start
            CO16    (LITERAL)0001,(ADDRESS)FFF0
    ...
    Built final binary
    12 31 1C 16 00 00 10 00
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Mapping, Optional
import logging

if TYPE_CHECKING:
    from rasm16.parser import Statement


@dataclass(frozen=True)
class TraceEvent:
    """
    Snapshot emitted by a pipeline stage.

    Exactly one of the payload fields is normally set, depending on the
    stage: raw lines for preprocessing, statements for the structured
    stages, the label table after label collection, and the image at
    the end.

    Attributes:
        stage: Short stage identifier (e.g. "constants", "addresses")
        message: Human-readable description of the step
    """
    stage: str
    message: str
    lines: Optional[tuple[str, ...]] = None
    statements: Optional[tuple["Statement", ...]] = None
    labels: Optional[Mapping[str, int]] = None
    image: Optional[bytes] = None


TraceHook = Callable[[TraceEvent], None]


# =============================================================================
# Formatting
# =============================================================================

def format_hex_dump(data: bytes, per_row: int = 8) -> list[str]:
    """Format bytes as rows of uppercase hex pairs."""
    return [
        " ".join(f"{b:02X}" for b in data[i:i + per_row])
        for i in range(0, len(data), per_row)
    ]


def format_event(event: TraceEvent) -> str:
    """Render a trace event as multi-line text."""
    out = [event.message]

    if event.lines is not None:
        for number, text in enumerate(event.lines, start=1):
            out.append(f"{number}\t{text}")

    if event.statements is not None:
        for statement in event.statements:
            prefix = f"{statement.line}\t{statement.address:04X}\t"
            if statement.label:
                out.append(prefix + statement.label)
                prefix = "\t\t"
            out.append(prefix + statement.render(typed=True))

    if event.labels is not None:
        for label, address in event.labels.items():
            out.append(f"{label} = {address:04X}")

    if event.image is not None:
        out.extend(format_hex_dump(event.image))

    return "\n".join(out)


def logging_trace_hook(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
) -> TraceHook:
    """
    Create a trace hook that writes formatted events to a logger.

    Args:
        logger: Destination logger (default: the rasm16.trace logger)
        level: Log level for the events

    Returns:
        A callable suitable for AssemblyContext.trace
    """
    target = logger or logging.getLogger(__name__)

    def hook(event: TraceEvent) -> None:
        if target.isEnabledFor(level):
            target.log(level, format_event(event))

    return hook
