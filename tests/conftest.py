"""
Pytest configuration and shared fixtures.

Setup, key derivation and proving are slow in pure Python, so the objects the
end-to-end tests share are built once per session from seeded randomness.
"""

import random
import sys
from pathlib import Path

import pytest

# Add the repository root to the path so absolute imports work
# (tests/ is inside the repository root, so parent is the root)
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from circuits import SimpleCircuit  # noqa: E402
from evm.compiler import compile_to_executable, compile_verifier  # noqa: E402
from protocol.keys import derive_proving_key, derive_verifying_key  # noqa: E402
from protocol.params import generate  # noqa: E402
from protocol.prover import prove_and_check  # noqa: E402
from witness import build  # noqa: E402

CONSTANT = 7
A = 3
B = 5
OUTPUT = 1575  # 7 * 3^2 * 5^2


@pytest.fixture(scope="session")
def params():
    return generate(4, rng=random.Random(2024))


@pytest.fixture(scope="session")
def shape():
    return SimpleCircuit(CONSTANT).shape()


@pytest.fixture(scope="session")
def vk(params, shape):
    return derive_verifying_key(params, shape)


@pytest.fixture(scope="session")
def pk(params, vk):
    return derive_proving_key(params, vk)


@pytest.fixture(scope="session")
def proof(pk):
    assignment = build({"a": A, "b": B}, CONSTANT)
    return prove_and_check(pk, assignment, [OUTPUT], rng=random.Random(99))


@pytest.fixture(scope="session")
def executable(params, vk, shape):
    program = compile_verifier(params, vk, shape, 1)
    return compile_to_executable(program)
