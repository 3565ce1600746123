"""Protocol - Setup, key derivation, proving and verification.

Only the error taxonomy is re-exported here; the circuit model depends on it,
so importing heavier submodules at package level would create an import cycle.
"""

from protocol.errors import (
    CapacityExceeded,
    CompilationFailure,
    ConstraintViolation,
    IOFailure,
    MalformedParameters,
    MalformedProof,
    PipelineError,
    SelfVerificationFailure,
    VerificationRejected,
)

__all__ = [
    "CapacityExceeded",
    "CompilationFailure",
    "ConstraintViolation",
    "IOFailure",
    "MalformedParameters",
    "MalformedProof",
    "PipelineError",
    "SelfVerificationFailure",
    "VerificationRejected",
]
