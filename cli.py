"""Command line for the proof pipeline: params, solidity/sol, proof/pro, verify/ver."""

import argparse
import sys
from typing import List, Optional

from protocol.config import PipelineConfig
from protocol.errors import PipelineError
from protocol.pipeline import generate_proof, generate_verifier, setup_params, verify_proof_hex

DEFAULTS = PipelineConfig()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evm-generator",
        description="PLONK verifier program generator for small arithmetic circuits",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON file overriding the built-in defaults"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    params = sub.add_parser("params", help="Generate KZG params (not for production use)")
    params.add_argument("-f", "--file", default=None, help=f"Output file (default {DEFAULTS.params_path})")
    params.add_argument("-k", type=int, default=None, help=f"log2 of the row capacity (default {DEFAULTS.k})")

    sol = sub.add_parser("solidity", aliases=["sol"], help="Generate verifier program")
    sol.add_argument("-f", "--file", default=None, help=f"Output file (default {DEFAULTS.verifier_path})")
    sol.add_argument("-p", "--params", default=None, help="Parameters file")
    sol.add_argument("-c", "--constant", type=int, default=None, help="Circuit constant")
    sol.add_argument("-b", "--bytecode", action="store_true", help="Write assembled bytecode as 0x-hex")

    pro = sub.add_parser("proof", aliases=["pro"], help="Generate proof for circuit")
    pro.add_argument("-f", "--file", default=None, help=f"Output file (default {DEFAULTS.proof_path})")
    pro.add_argument("-v", "--verify", action="store_true", help="Also run the compiled verifier")
    pro.add_argument("-p", "--params", default=None, help="Parameters file")
    pro.add_argument("-c", "--constant", type=int, default=None, help="Circuit constant")
    pro.add_argument("-a", type=int, default=None, help=f"Private input a (default {DEFAULTS.a})")
    pro.add_argument("-b", type=int, default=None, help=f"Private input b (default {DEFAULTS.b})")

    ver = sub.add_parser("verify", aliases=["ver"], help="Verify proof for circuit")
    ver.add_argument("-p", "--params", default=None, help="Parameters file")
    ver.add_argument("-c", "--constant", type=int, default=None, help="Circuit constant")
    ver.add_argument("-o", "--output", dest="c", type=int, default=None, help=f"Expected public output (default {DEFAULTS.c})")
    ver.add_argument("--proof", required=True, help="Proof bytes as hex")
    return parser


def _pick(value, default):
    return default if value is None else value


def load_config(path: Optional[str]) -> PipelineConfig:
    if path is None:
        return PipelineConfig()
    with open(path) as f:
        return PipelineConfig.from_json(f.read())


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: cannot load config {args.config}: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "params":
            setup_params(_pick(args.file, cfg.params_path), k=_pick(args.k, cfg.k))
        elif args.command in ("solidity", "sol"):
            generate_verifier(
                _pick(args.params, cfg.params_path),
                _pick(args.file, cfg.verifier_path),
                _pick(args.constant, cfg.constant),
                bytecode=args.bytecode,
                circuit=cfg.circuit,
            )
        elif args.command in ("proof", "pro"):
            generate_proof(
                _pick(args.params, cfg.params_path),
                _pick(args.file, cfg.proof_path),
                _pick(args.constant, cfg.constant),
                _pick(args.a, cfg.a),
                _pick(args.b, cfg.b),
                verify=args.verify,
                circuit=cfg.circuit,
                gas_limit=cfg.gas_limit,
            )
        elif args.command in ("verify", "ver"):
            verify_proof_hex(
                _pick(args.params, cfg.params_path),
                _pick(args.constant, cfg.constant),
                _pick(args.c, cfg.c),
                args.proof,
                circuit=cfg.circuit,
            )
    except PipelineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
