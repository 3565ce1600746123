"""The PLONK verification equation, written once against the Loader interface.

Both verification paths run this function: verify_algebraic with a
NativeLoader, the verifier compiler with a ProgramLoader. Any change to the
protocol therefore reaches both paths at once.

Notation (evaluations at ζ carry a bar in the literature):
    zh   = ζ^n - 1
    L_i  = ω^i zh / (n (ζ - ω^i))
    PI   = -Σ x_i L_i
    ab   = (ā + β s̄1 + γ)(b̄ + β s̄2 + γ)

    D  = ā b̄ [qM] + ā [qL] + b̄ [qR] + c̄ [qO] + [qC]
         + (α (ā + βζ + γ)(b̄ + β K1 ζ + γ)(c̄ + β K2 ζ + γ) + α² L_0) [z]
         - α β z̄ω ab [Sσ3]
    r0 = PI - α z̄ω ab (c̄ + γ) - α² L_0          ([r] = D + r0 [1])
    t̄  = r̄ / zh

    F  = [t_lo] + ζ^n [t_mid] + ζ^2n [t_hi] + v D + v²[a] + v³[b] + v⁴[c] + v⁵[Sσ1] + v⁶[Sσ2]
    E  = t̄ + v (r̄ - r0) + v² ā + v³ b̄ + v⁴ c̄ + v⁵ s̄1 + v⁶ s̄2 + u z̄ω
    A  = [W_ζ] + u [W_ζω]
    B  = ζ [W_ζ] + u ζ ω [W_ζω] + F + u [z] - E [1]

    accept iff e(A, [τ]₂) == e(B, [1]₂)
"""

from primitives.curve import G1_GENERATOR
from primitives.field import FR_MODULUS
from protocol.keys import VerifyingKey
from protocol.loader import Loader
from protocol.permutation import K1, K2


def verify_equation(loader: Loader, vk: VerifyingKey):
    """Replay the transcript and evaluate the final pairing check.

    Returns:
        The loader's representation of the pairing result (a bool natively)
    """
    n = vk.n
    omega = vk.omega
    transcript = loader.transcript
    const = loader.load_const

    # --- Transcript replay ---
    transcript.common_scalar(const(vk.transcript_repr()))
    instances = [loader.load_instance(i) for i in range(vk.num_instances)]
    for x in instances:
        transcript.common_scalar(x)

    a = transcript.read_point()
    b = transcript.read_point()
    c = transcript.read_point()
    beta = transcript.squeeze_challenge()
    gamma = transcript.squeeze_challenge()

    z = transcript.read_point()
    alpha = transcript.squeeze_challenge()

    t_lo = transcript.read_point()
    t_mid = transcript.read_point()
    t_hi = transcript.read_point()
    zeta = transcript.squeeze_challenge()

    a_eval = transcript.read_scalar()
    b_eval = transcript.read_scalar()
    c_eval = transcript.read_scalar()
    s1_eval = transcript.read_scalar()
    s2_eval = transcript.read_scalar()
    z_omega_eval = transcript.read_scalar()
    r_eval = transcript.read_scalar()
    v = transcript.squeeze_challenge()

    w_zeta = transcript.read_point()
    w_zeta_omega = transcript.read_point()
    u = transcript.squeeze_challenge()

    # --- Vanishing, Lagrange and public-input evaluations ---
    one = const(1)
    zeta_n = loader.pow_two_power(zeta, vk.k)
    zh = zeta_n - one

    n_const = const(n)
    roots = [pow(omega, i, FR_MODULUS) for i in range(max(vk.num_instances, 1))]
    denominators = [n_const * (zeta - const(w)) for w in roots] + [zh]
    inverses = loader.batch_invert(denominators)
    zh_inv = inverses[-1]

    lagrange = [const(w) * zh * inv for w, inv in zip(roots, inverses)]
    l0 = lagrange[0]
    pi = const(0)
    for x, li in zip(instances, lagrange):
        pi = pi - x * li

    # --- Linearisation commitment D and constant term r0 ---
    alpha_sq = alpha * alpha
    ab = (a_eval + beta * s1_eval + gamma) * (b_eval + beta * s2_eval + gamma)
    ab_z = alpha * ab * z_omega_eval
    perm_num = (
        (a_eval + beta * zeta + gamma)
        * (b_eval + beta * const(K1) * zeta + gamma)
        * (c_eval + beta * const(K2) * zeta + gamma)
    )
    z_scalar = alpha * perm_num + alpha_sq * l0
    s3_scalar = ab_z * beta

    cm = vk.commitments
    d = (
        loader.load_point(cm["q_m"]) * (a_eval * b_eval)
        + loader.load_point(cm["q_l"]) * a_eval
        + loader.load_point(cm["q_r"]) * b_eval
        + loader.load_point(cm["q_o"]) * c_eval
        + loader.load_point(cm["q_c"])
        + z * z_scalar
        - loader.load_point(cm["s_sigma3"]) * s3_scalar
    )
    r0 = pi - ab_z * (c_eval + gamma) - alpha_sq * l0
    t_eval = r_eval * zh_inv

    # --- Batched opening ---
    v2 = v * v
    v3 = v2 * v
    v4 = v3 * v
    v5 = v4 * v
    v6 = v5 * v
    zeta_2n = zeta_n * zeta_n

    f = (
        t_lo
        + t_mid * zeta_n
        + t_hi * zeta_2n
        + d * v
        + a * v2
        + b * v3
        + c * v4
        + loader.load_point(cm["s_sigma1"]) * v5
        + loader.load_point(cm["s_sigma2"]) * v6
    )
    e = (
        t_eval
        + v * (r_eval - r0)
        + v2 * a_eval
        + v3 * b_eval
        + v4 * c_eval
        + v5 * s1_eval
        + v6 * s2_eval
        + u * z_omega_eval
    )

    lhs = w_zeta + w_zeta_omega * u
    rhs = (
        w_zeta * zeta
        + w_zeta_omega * (u * zeta * const(omega))
        + f
        + z * u
        - loader.load_point(G1_GENERATOR) * e
    )
    return loader.pairing_check(lhs, rhs, vk.s_g2, vk.g2)
