# hypermap_id/cli.py
"""
Hypermap ID CLI

Commands:
  hypermap-id namehash NAME             - Namehash of a name
  hypermap-id predict NAME              - Proxy and TBA addresses for a name
  hypermap-id commitment LABEL ADDRESS  - Registration commitment
  hypermap-id credential NAME           - Argon2id credential hash (password read from tty/stdin)
  hypermap-id lookup NAME               - On-chain TBA/owner, compared with the prediction

Environment:
  HYPERMAP_CHAIN_ID  - Chain ID (default 8453)
  HYPERMAP_RPC_URL   - JSON-RPC endpoint for `lookup`
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
import sys
from typing import List, Optional

from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from . import __version__
from .auth import derive_credential_hash
from .chains import CHAINS, ChainConfig, DEFAULT_CHAIN_ID, get_chain
from .errors import HypermapIdError, NetworkUnreachableError
from .names import namehash, normalize_label
from .tba import AccountScheme, TbaPredictor
from .wire import compute_commitment, encode_hypermap_get, decode_hypermap_get


def _chain(args: argparse.Namespace) -> ChainConfig:
    chain_id = args.chain_id or int(os.environ.get("HYPERMAP_CHAIN_ID", DEFAULT_CHAIN_ID))
    if chain_id in CHAINS:
        return get_chain(chain_id)
    # Other chains reuse the Base deployment addresses
    return get_chain(DEFAULT_CHAIN_ID).replace(chain_id=chain_id, name=f"chain-{chain_id}")


def _name(raw: str, normalize: bool) -> str:
    return normalize_label(raw) if normalize else raw


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2))


# =============================================================================
# Commands
# =============================================================================

def cmd_namehash(args: argparse.Namespace) -> int:
    name = _name(args.name, args.normalize)
    print("0x" + namehash(name).hex())
    return 0


def cmd_predict(args: argparse.Namespace) -> int:
    name = _name(args.name, args.normalize)
    predictor = TbaPredictor(_chain(args), scheme=AccountScheme(args.scheme))
    _print_json(predictor.predict(name, implementation=args.implementation).to_dict())
    return 0


def cmd_commitment(args: argparse.Namespace) -> int:
    label = _name(args.label, args.normalize)
    print("0x" + compute_commitment(label, args.address).hex())
    return 0


def cmd_credential(args: argparse.Namespace) -> int:
    name = _name(args.name, args.normalize)
    if args.password_stdin:
        password = sys.stdin.readline().rstrip("\n")
    else:
        password = getpass.getpass(f"Password for {name}: ")
    print(derive_credential_hash(password, name).hex)
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    rpc_url = args.rpc_url or os.environ.get("HYPERMAP_RPC_URL", "")
    if not rpc_url:
        print("Error: No RPC URL. Use --rpc-url or set HYPERMAP_RPC_URL.", file=sys.stderr)
        return 1

    chain = _chain(args)
    name = _name(args.name, args.normalize)
    prediction = TbaPredictor(chain).predict(name)

    w3 = Web3(Web3.HTTPProvider(rpc_url))
    try:
        data = w3.eth.call({"to": chain.hypermap, "data": encode_hypermap_get(prediction.node_id)})
    except (ProviderConnectionError, OSError) as e:
        raise NetworkUnreachableError(f"RPC unreachable at {rpc_url}: {e}") from e
    tba, owner, _ = decode_hypermap_get(bytes(data))

    minted = int(tba, 16) != 0
    _print_json({
        "name": name,
        "node": prediction.node_hex,
        "minted": minted,
        "tba": tba if minted else None,
        "owner": to_checksum_address(owner) if minted else None,
        "predicted_tba": prediction.account,
        "matches_prediction": prediction.matches(tba) if minted else None,
    })
    return 0


# =============================================================================
# Parser
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hypermap-id",
        description="Hypermap name, address and credential derivations",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--chain-id", type=int, default=None, help="Chain ID (or set HYPERMAP_CHAIN_ID)")
    parser.add_argument(
        "--normalize", action="store_true", help="UTS-46 normalize names before use"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("namehash", help="Namehash of a name")
    p.add_argument("name")
    p.set_defaults(func=cmd_namehash)

    p = sub.add_parser("predict", help="Predict proxy and TBA addresses")
    p.add_argument("name")
    p.add_argument("--implementation", default=None, help="Account implementation override")
    p.add_argument(
        "--scheme",
        default=AccountScheme.ERC6551_V3.value,
        choices=[s.value for s in AccountScheme],
        help="Account init code scheme",
    )
    p.set_defaults(func=cmd_predict)

    p = sub.add_parser("commitment", help="Registration commitment for a label")
    p.add_argument("label", help="Label without zone (e.g. alice)")
    p.add_argument("address", help="Claimant address")
    p.set_defaults(func=cmd_commitment)

    p = sub.add_parser("credential", help="Argon2id credential hash")
    p.add_argument("name", help="Full node name (e.g. alice.os)")
    p.add_argument(
        "--password-stdin", action="store_true", help="Read the password from stdin"
    )
    p.set_defaults(func=cmd_credential)

    p = sub.add_parser("lookup", help="Read a name's TBA and owner from Hypermap")
    p.add_argument("name")
    p.add_argument("--rpc-url", help="JSON-RPC URL (or set HYPERMAP_RPC_URL)")
    p.set_defaults(func=cmd_lookup)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (HypermapIdError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
