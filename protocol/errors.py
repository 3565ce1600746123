"""Pipeline error taxonomy.

Everything a caller can trigger with bad input or bad files derives from
PipelineError. SelfVerificationFailure is deliberately outside that tree: it
signals a bug in the prover, not a bad input.
"""

from typing import Optional


class PipelineError(ValueError):
    """Base class for expected pipeline failures."""


class IOFailure(PipelineError):
    """A file could not be read or written."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class MalformedParameters(PipelineError):
    """Parameter bytes are truncated, tagged wrongly or fail validation."""


class MalformedProof(PipelineError):
    """Proof bytes do not parse as a proof."""


class CapacityExceeded(PipelineError):
    """The circuit needs more rows than the parameters support."""

    def __init__(self, required_k: int, available_k: int):
        self.required_k = required_k
        self.available_k = available_k
        super().__init__(
            f"circuit needs k={required_k} (2^{required_k} rows) "
            f"but parameters only support k={available_k}"
        )


class ConstraintViolation(PipelineError):
    """The assignment does not satisfy the circuit.

    Attributes:
        gate: Name of the failing gate or "copy"/"instance" for wiring checks
        row: Row of the failure
        column: Column name ("a", "b", "c") or None for whole-row gate failures
    """

    def __init__(self, message: str, gate: str, row: int, column: Optional[str] = None):
        self.gate = gate
        self.row = row
        self.column = column
        super().__init__(message)


class CompilationFailure(PipelineError):
    """Verifier assembly could not be lowered to bytecode."""

    def __init__(self, message: str, line: int, fragment: str):
        self.line = line
        self.fragment = fragment
        super().__init__(f"line {line}: {message}: {fragment!r}")


class VerificationRejected(PipelineError):
    """A proof was checked and found invalid."""


class SelfVerificationFailure(RuntimeError):
    """A freshly generated proof did not verify. Indicates a prover defect."""
