import argparse
import pathlib
import sys
import time

import requests
from rich.console import Console

from eth2genesis import __version__
from eth2genesis.exceptions import GenesisError, InputError
from eth2genesis.forks import ALL_FORKS, Fork
from eth2genesis.genesis import GenesisOptions, generate_genesis
from eth2genesis.utils import bls
from eth2genesis.validators import MAX_IN_FLIGHT, default_workers, parse_withdrawal_address


def parse_root(value: str) -> bytes:
    hex_str = value[2:] if value.startswith("0x") else value
    try:
        root = bytes.fromhex(hex_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex string: {value!r}") from None
    if len(root) != 32:
        raise argparse.ArgumentTypeError(f"expected 32 bytes, got {len(root)}")
    return root


def _genesis_arguments() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--config",
        dest="config",
        default="mainnet",
        help="Consensus config: a built-in name (mainnet, minimal) or a path to a config YAML.",
    )
    parser.add_argument(
        "--preset",
        dest="preset",
        default=None,
        help="Preset name or directory. Defaults to the PRESET_BASE of the config.",
    )
    parser.add_argument(
        "--mnemonics",
        dest="mnemonics",
        type=pathlib.Path,
        default=None,
        help="File with YAML of key sources.",
    )
    parser.add_argument(
        "--additional-validators",
        dest="additional_validators",
        type=pathlib.Path,
        default=None,
        help="File with list of additional validators, as pubkey:withdrawal_credentials[:balance] lines.",
    )
    parser.add_argument(
        "--eth1-config",
        dest="eth1_config",
        type=pathlib.Path,
        default=None,
        help="Path to the execution genesis config JSON. No transition yet if empty.",
    )
    parser.add_argument(
        "--shadow-fork-rpc",
        "--shadow-fork-eth1-rpc",
        dest="shadow_fork_rpc",
        default=None,
        help="Fetch the latest execution block from this execution node, for a shadow fork.",
    )
    parser.add_argument(
        "--shadow-fork-block-file",
        dest="shadow_fork_block_file",
        type=pathlib.Path,
        default=None,
        help="Load the execution block from a JSON file, for a shadow fork. Takes precedence over the RPC option.",
    )
    parser.add_argument(
        "--eth1-block",
        dest="eth1_block",
        type=parse_root,
        default=b"\x00" * 32,
        help="If not transitioned: eth1 block hash to put into the state.",
    )
    parser.add_argument(
        "--timestamp",
        dest="timestamp",
        type=int,
        default=int(time.time()),
        help="Eth1 block timestamp. Defaults to now.",
    )
    parser.add_argument(
        "--eth1-match-genesis-time",
        dest="eth1_match_genesis_time",
        action="store_true",
        default=False,
        help="Use the execution genesis time as eth1 timestamp. Overrides other genesis time settings.",
    )
    parser.add_argument(
        "--eth1-withdrawal-address",
        dest="eth1_withdrawal_address",
        default=None,
        help="Eth1 withdrawal address to set for the derived validators. BLS withdrawal keys are used if empty.",
    )
    parser.add_argument(
        "--state-output",
        dest="state_output",
        type=pathlib.Path,
        default=pathlib.Path("genesis.ssz"),
        help="Output path for the state file.",
    )
    parser.add_argument(
        "--tranches-dir",
        dest="tranches_dir",
        type=pathlib.Path,
        default=pathlib.Path("tranches"),
        help="Directory to dump lists of pubkeys of each tranche in.",
    )
    parser.add_argument(
        "--workers",
        dest="workers",
        type=int,
        default=default_workers(),
        help="Derive keys with N processes. Defaults to core count.",
    )
    parser.add_argument(
        "--max-in-flight",
        dest="max_in_flight",
        type=int,
        default=MAX_IN_FLIGHT,
        help="Maximum number of key derivations handed to the workers at once.",
    )
    parser.add_argument(
        "--bls-type",
        dest="bls_type",
        choices=list(bls.BACKENDS),
        default="fastest",
        help="BLS library to derive public keys with.",
    )
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eth2-genesis",
        description="Create a genesis state for an Ethereum beacon chain.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True
    common = _genesis_arguments()
    for fork in ALL_FORKS:
        aliases = ["merge"] if fork is Fork.BELLATRIX else []
        subparsers.add_parser(
            fork.value,
            aliases=aliases,
            parents=[common],
            help=f"Create genesis state for a {fork.value} beacon chain.",
        )
    subparsers.add_parser("version", help="Print version and exit.")
    return parser


def options_from_args(args: argparse.Namespace) -> GenesisOptions:
    return GenesisOptions(
        fork=Fork.from_name(args.command),
        config=args.config,
        preset=args.preset,
        mnemonics=args.mnemonics,
        additional_validators=args.additional_validators,
        eth1_config=args.eth1_config,
        shadow_fork_rpc=args.shadow_fork_rpc,
        shadow_fork_block_file=args.shadow_fork_block_file,
        eth1_block=args.eth1_block,
        timestamp=args.timestamp,
        eth1_match_genesis_time=args.eth1_match_genesis_time,
        eth1_withdrawal_address=parse_withdrawal_address(args.eth1_withdrawal_address),
        state_output=args.state_output,
        tranches_dir=args.tranches_dir,
        workers=args.workers,
        max_in_flight=args.max_in_flight,
        bls_type=args.bls_type,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    if args.command == "version":
        console.print(f"eth2genesis version {__version__}")
        return 0

    err_console = Console(stderr=True)
    try:
        options = options_from_args(args)
        generate_genesis(options, console=console)
    except InputError as e:
        err_console.print(f"invalid input: {e}", style="red", markup=False)
        sys.exit(1)
    except (GenesisError, OSError, requests.RequestException) as e:
        err_console.print(f"failed to create genesis state: {e}", style="red", markup=False)
        sys.exit(1)
    console.print("done!")
    return 0
