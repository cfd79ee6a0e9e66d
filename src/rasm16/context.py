"""
Assembly Context
================

The AssemblyContext is the construction context of one assembly run. It
owns the immutable ISA tables and the optional collaborators (include
reader, trace hook) and is handed to every pipeline stage, so no stage
reaches for global state.
"""

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from rasm16.isa import DEFAULT_ISA, InstructionSet
from rasm16.trace import TraceEvent, TraceHook


# Reads an include file by name (extension appended by the reader) and
# returns its raw lines. Failures are raised as OSError.
IncludeReader = Callable[[str], list[str]]


@dataclass(frozen=True)
class AssemblyContext:
    """
    Per-run pipeline context.

    Attributes:
        isa: Instruction set tables used by every stage
        include_reader: Reader for include files (None disables includes)
        trace: Optional hook receiving TraceEvents from each stage
        filename: Name of the top-level source, used in error locations
    """
    isa: InstructionSet = DEFAULT_ISA
    include_reader: Optional[IncludeReader] = None
    trace: Optional[TraceHook] = None
    filename: str = "<input>"

    @property
    def tracing(self) -> bool:
        return self.trace is not None

    def emit(
        self,
        stage: str,
        message: str,
        *,
        lines: Optional[list[str]] = None,
        statements: Optional[list] = None,
        labels: Optional[Mapping[str, int]] = None,
        image: Optional[bytes] = None,
    ) -> None:
        """Send a TraceEvent to the hook, if one is installed."""
        if not self.tracing:
            return
        self.trace(TraceEvent(
            stage=stage,
            message=message,
            lines=tuple(lines) if lines is not None else None,
            statements=tuple(statements) if statements is not None else None,
            labels=dict(labels) if labels is not None else None,
            image=image,
        ))
