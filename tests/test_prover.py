"""End-to-end proving and algebraic verification."""

import random

import pytest

from circuits import SimpleCircuit
from circuits.base import Column
from primitives.field import FR, FR_MODULUS
from protocol.errors import ConstraintViolation, MalformedProof, SelfVerificationFailure
from protocol.keys import derive_verifying_key
from protocol.proof import PROOF_SIZE, Proof, decode_calldata, encode_calldata, load_proof_artifact, proof_to_json
from protocol.prover import prove, prove_and_check
from protocol.verifier import verify_algebraic
from witness import build

from tests.conftest import A, B, CONSTANT, OUTPUT


class TestProve:
    """Proof generation."""

    def test_size(self, proof) -> None:
        """Proofs are 800 bytes."""
        assert len(proof) == PROOF_SIZE == 800

    def test_verifies(self, vk, proof) -> None:
        """An honest proof verifies."""
        assert verify_algebraic(vk, [OUTPUT], proof)

    def test_deterministic_given_randomness(self, pk) -> None:
        """The same randomness gives the same proof."""
        assignment = build({"a": A, "b": B}, CONSTANT)
        first = prove(pk, assignment, [OUTPUT], rng=random.Random(99))
        second = prove(pk, assignment, [OUTPUT], rng=random.Random(99))
        assert first == second

    def test_blinding_changes_proof(self, pk, vk, proof) -> None:
        """Different blinding gives a different valid proof."""
        assignment = build({"a": A, "b": B}, CONSTANT)
        other = prove_and_check(pk, assignment, [OUTPUT], rng=random.Random(7))
        assert other != proof
        assert verify_algebraic(vk, [OUTPUT], other)

    def test_self_check_rejects(self, pk, monkeypatch) -> None:
        """A proof the verifier rejects is never returned."""
        monkeypatch.setattr("protocol.prover.verify_algebraic", lambda *args: False)
        assignment = build({"a": A, "b": B}, CONSTANT)
        result = None
        with pytest.raises(SelfVerificationFailure, match="self-verification"):
            result = prove_and_check(pk, assignment, [OUTPUT], rng=random.Random(99))
        assert result is None

    def test_self_check_runs_verifier(self, pk, monkeypatch) -> None:
        """Self-verification checks the proof against the key and instances."""
        calls = []

        def record(vk, instances, proof):
            calls.append((vk, list(instances), len(proof)))
            return True

        monkeypatch.setattr("protocol.prover.verify_algebraic", record)
        assignment = build({"a": A, "b": B}, CONSTANT)
        prove_and_check(pk, assignment, [OUTPUT], rng=random.Random(99))
        assert calls == [(pk.vk, [OUTPUT], PROOF_SIZE)]

    def test_instance_mismatch(self, pk) -> None:
        """Claimed instances must match the assignment."""
        assignment = build({"a": A, "b": B}, CONSTANT)
        with pytest.raises(ConstraintViolation):
            prove(pk, assignment, [OUTPUT + 1])

    def test_unsatisfied_assignment(self, pk) -> None:
        """Unsatisfied assignments are refused before proving."""
        _, assignment = SimpleCircuit(CONSTANT).assign({"a": A, "b": B})
        assignment.wires[Column.C][2] = FR(26)
        with pytest.raises(ConstraintViolation) as info:
            prove(pk, assignment, [OUTPUT])
        assert info.value.row == 2


class TestVerifyAlgebraic:
    """Rejection without exceptions."""

    def test_wrong_public_input(self, vk, proof, capsys) -> None:
        """A wrong public input is rejected and logged."""
        assert not verify_algebraic(vk, [OUTPUT + 1], proof)
        assert "ERROR" in capsys.readouterr().out

    def test_stable(self, vk, proof) -> None:
        """Verification has no side effects on the result."""
        assert verify_algebraic(vk, [OUTPUT], proof) == verify_algebraic(vk, [OUTPUT], proof)

    def test_instance_count(self, vk, proof) -> None:
        """Too few or too many instances are rejected."""
        assert not verify_algebraic(vk, [], proof)
        assert not verify_algebraic(vk, [OUTPUT, OUTPUT], proof)

    def test_instance_out_of_field(self, vk, proof) -> None:
        """Instances at or above the modulus are rejected."""
        assert not verify_algebraic(vk, [OUTPUT + FR_MODULUS], proof)

    def test_truncated(self, vk, proof) -> None:
        """Short proofs are rejected."""
        assert not verify_algebraic(vk, [OUTPUT], proof[:-1])
        assert not verify_algebraic(vk, [OUTPUT], b"")

    def test_flipped_evaluation(self, vk, proof) -> None:
        """A changed evaluation is rejected."""
        data = bytearray(proof)
        data[7 * 64 + 31] ^= 1
        assert not verify_algebraic(vk, [OUTPUT], bytes(data))

    def test_off_curve_point(self, vk, proof) -> None:
        """An off-curve commitment is rejected."""
        data = bytearray(proof)
        data[63] ^= 1
        assert not verify_algebraic(vk, [OUTPUT], bytes(data))

    def test_non_canonical_scalar(self, vk, proof) -> None:
        """A non-canonical evaluation is rejected."""
        data = bytearray(proof)
        data[7 * 64 : 7 * 64 + 32] = (FR_MODULUS + 1).to_bytes(32, "big")
        assert not verify_algebraic(vk, [OUTPUT], bytes(data))

    def test_bound_to_key(self, params, proof) -> None:
        """A proof does not verify under another circuit's key."""
        other = derive_verifying_key(params, SimpleCircuit(CONSTANT + 1).shape())
        assert not verify_algebraic(other, [OUTPUT], proof)


class TestProofFormat:
    """Structured view, calldata and JSON artifact."""

    def test_structured_round_trip(self, proof) -> None:
        """The structured view re-encodes to the same bytes."""
        parsed = Proof.from_bytes(proof)
        assert parsed.to_bytes() == proof
        assert 0 <= parsed.r_eval < FR_MODULUS

    def test_structured_rejects_length(self, proof) -> None:
        """Wrong-length proofs are rejected."""
        with pytest.raises(MalformedProof):
            Proof.from_bytes(proof + b"\x00")

    def test_calldata(self, proof) -> None:
        """Calldata is the instances followed by the proof."""
        calldata = encode_calldata([OUTPUT], proof)
        assert len(calldata) == 32 + PROOF_SIZE
        assert calldata[:32] == OUTPUT.to_bytes(32, "big")
        assert decode_calldata(calldata, 1) == ([OUTPUT], proof)

    def test_calldata_rejects_out_of_field(self, proof) -> None:
        """Out-of-field instances cannot be encoded."""
        with pytest.raises(ValueError):
            encode_calldata([FR_MODULUS], proof)

    def test_artifact(self, proof) -> None:
        """The JSON artifact loads back to proof and calldata."""
        calldata = encode_calldata([OUTPUT], proof)
        text = proof_to_json(proof, calldata)
        assert text.startswith("{\n    ")
        assert load_proof_artifact(text) == (proof, calldata)

    def test_artifact_malformed(self) -> None:
        """Bad hex or bad JSON is rejected."""
        with pytest.raises(MalformedProof):
            load_proof_artifact('{"proof": "0xzz", "calldata": "0x"}')
        with pytest.raises(MalformedProof):
            load_proof_artifact("not json")
