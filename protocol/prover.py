"""PLONK prover.

Five rounds over a Keccak transcript:

    1. blinded wire polynomials a, b, c                 -> β, γ
    2. blinded permutation accumulator z                -> α
    3. quotient t split into t_lo, t_mid, t_hi          -> ζ
    4. evaluations at ζ / ζω and linearisation r(ζ)     -> v
    5. batched opening proofs W_ζ, W_ζω                  -> u (verifier only)

Blinding adds random multiples of Z_H, which vanish on the domain and leave
every constraint intact. The randomness only enters those blinders; challenges
are a pure function of the transcript.
"""

import random
import secrets
from typing import List, Optional

from circuits.base import COLUMNS, Assignment, check
from primitives import polynomial as poly
from primitives.field import FR, FR_MODULUS, get_omega
from primitives.transcript import TranscriptWriter
from protocol.errors import ConstraintViolation, SelfVerificationFailure
from protocol.keys import ProvingKey
from protocol.kzg import commit, opening_quotient
from protocol.permutation import K1, K2, grand_product
from protocol.verifier import verify_algebraic


def _linear(c0: FR, c1: FR) -> FR:
    out = FR.Zeros(2)
    out[0] = c0
    out[1] = c1
    return out


def _constant(value: FR) -> FR:
    out = FR.Zeros(1)
    out[0] = value
    return out


def prove(
    pk: ProvingKey,
    assignment: Assignment,
    instances: List[int],
    rng: Optional[random.Random] = None,
) -> bytes:
    """Generate proof bytes for a satisfied assignment.

    Raises:
        ConstraintViolation: if the assignment fails the circuit or the
            instances differ from the assigned ones
        SelfVerificationFailure: if the quotient does not divide (prover defect)
    """
    vk = pk.vk
    shape = vk.shape
    k = vk.k
    n = vk.n
    params = pk.params
    rng = rng or secrets.SystemRandom()
    instances = [int(x) for x in instances]

    if instances != [int(x) for x in assignment.instances]:
        raise ConstraintViolation(
            "public instances differ from the assigned instances", gate="instance", row=0
        )
    check(shape, assignment)

    def blinders(count: int) -> List[FR]:
        return [FR(rng.randrange(FR_MODULUS)) for _ in range(count)]

    transcript = TranscriptWriter()
    transcript.common_scalar(vk.transcript_repr())
    for x in instances:
        transcript.common_scalar(x)

    # --- Round 1: wire commitments ---
    wire_evals = [assignment.wires[col] for col in COLUMNS]
    a_poly, b_poly, c_poly = [
        poly.blind(poly.to_coefficients(w, k), blinders(2), n) for w in wire_evals
    ]
    for p in (a_poly, b_poly, c_poly):
        transcript.write_point(commit(params, p))
    beta = FR(transcript.squeeze_challenge())
    gamma = FR(transcript.squeeze_challenge())

    # --- Round 2: permutation accumulator ---
    z_evals = grand_product(wire_evals, pk.sigmas, beta, gamma, k)
    z_poly = poly.blind(poly.to_coefficients(z_evals, k), blinders(3), n)
    transcript.write_point(commit(params, z_poly))
    alpha = FR(transcript.squeeze_challenge())

    # --- Round 3: quotient ---
    omega = get_omega(k)
    fixed = pk.fixed
    pi_poly = poly.to_coefficients(shape.public_evals(instances), k)

    gate = poly.add(
        poly.add(
            poly.mul(poly.mul(a_poly, b_poly), fixed["q_m"]),
            poly.mul(a_poly, fixed["q_l"]),
        ),
        poly.add(
            poly.add(poly.mul(b_poly, fixed["q_r"]), poly.mul(c_poly, fixed["q_o"])),
            poly.add(fixed["q_c"], pi_poly),
        ),
    )
    perm_num = poly.mul(
        poly.mul(
            poly.add(a_poly, _linear(gamma, beta)),
            poly.add(b_poly, _linear(gamma, beta * FR(K1))),
        ),
        poly.mul(poly.add(c_poly, _linear(gamma, beta * FR(K2))), z_poly),
    )
    perm_den = poly.mul(
        poly.mul(
            poly.add(a_poly, poly.add(poly.scale(fixed["s_sigma1"], beta), _constant(gamma))),
            poly.add(b_poly, poly.add(poly.scale(fixed["s_sigma2"], beta), _constant(gamma))),
        ),
        poly.mul(
            poly.add(c_poly, poly.add(poly.scale(fixed["s_sigma3"], beta), _constant(gamma))),
            poly.shift_argument(z_poly, omega),
        ),
    )
    boundary = poly.mul(poly.sub(z_poly, _constant(FR(1))), pk.l0)
    numerator = poly.add(
        gate,
        poly.add(poly.scale(poly.sub(perm_num, perm_den), alpha), poly.scale(boundary, alpha * alpha)),
    )
    t_poly, remainder = poly.divide_by_vanishing(numerator, n)
    if poly.degree(remainder) >= 0:
        raise SelfVerificationFailure("quotient numerator is not divisible by the vanishing polynomial")
    t_lo, t_mid, t_hi = poly.split(t_poly, n, 3)
    for p in (t_lo, t_mid, t_hi):
        transcript.write_point(commit(params, p))
    zeta = FR(transcript.squeeze_challenge())

    # --- Round 4: evaluations and linearisation ---
    a_eval = poly.evaluate(a_poly, zeta)
    b_eval = poly.evaluate(b_poly, zeta)
    c_eval = poly.evaluate(c_poly, zeta)
    s1_eval = poly.evaluate(fixed["s_sigma1"], zeta)
    s2_eval = poly.evaluate(fixed["s_sigma2"], zeta)
    z_omega_eval = poly.evaluate(z_poly, zeta * omega)

    l0_eval = poly.evaluate(pk.l0, zeta)
    pi_eval = poly.evaluate(pi_poly, zeta)
    ab = (a_eval + beta * s1_eval + gamma) * (b_eval + beta * s2_eval + gamma)
    ab_z = alpha * ab * z_omega_eval
    perm_num_eval = (
        (a_eval + beta * zeta + gamma)
        * (b_eval + beta * FR(K1) * zeta + gamma)
        * (c_eval + beta * FR(K2) * zeta + gamma)
    )
    r_poly = poly.add(
        poly.add(
            poly.add(poly.scale(fixed["q_m"], a_eval * b_eval), poly.scale(fixed["q_l"], a_eval)),
            poly.add(poly.scale(fixed["q_r"], b_eval), poly.scale(fixed["q_o"], c_eval)),
        ),
        poly.add(
            poly.add(fixed["q_c"], poly.scale(z_poly, alpha * perm_num_eval + alpha * alpha * l0_eval)),
            poly.sub(
                _constant(pi_eval - ab_z * (c_eval + gamma) - alpha * alpha * l0_eval),
                poly.scale(fixed["s_sigma3"], ab_z * beta),
            ),
        ),
    )
    r_eval = poly.evaluate(r_poly, zeta)
    for value in (a_eval, b_eval, c_eval, s1_eval, s2_eval, z_omega_eval, r_eval):
        transcript.write_scalar(int(value))
    v = FR(transcript.squeeze_challenge())

    # --- Round 5: openings ---
    zeta_n = zeta ** n
    t_combined = poly.add(
        t_lo, poly.add(poly.scale(t_mid, zeta_n), poly.scale(t_hi, zeta_n * zeta_n))
    )
    batched = t_combined
    power = FR(1)
    for p in (r_poly, a_poly, b_poly, c_poly, fixed["s_sigma1"], fixed["s_sigma2"]):
        power = power * v
        batched = poly.add(batched, poly.scale(p, power))
    w_zeta = opening_quotient(batched, zeta)
    w_zeta_omega = opening_quotient(z_poly, zeta * omega)
    transcript.write_point(commit(params, w_zeta))
    transcript.write_point(commit(params, w_zeta_omega))

    return transcript.finalize()


def prove_and_check(
    pk: ProvingKey,
    assignment: Assignment,
    instances: List[int],
    rng: Optional[random.Random] = None,
) -> bytes:
    """prove() followed by the mandatory self-verification.

    Raises:
        SelfVerificationFailure: if the fresh proof does not verify
    """
    proof = prove(pk, assignment, instances, rng=rng)
    if not verify_algebraic(pk.vk, instances, proof):
        raise SelfVerificationFailure("generated proof failed self-verification")
    return proof
