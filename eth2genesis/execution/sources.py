"""
Where the execution block of a genesis state comes from, and how the eth1 timestamp is chosen.
"""
from pathlib import Path
from typing import NamedTuple, Optional, Tuple, Union

import requests
from rich.console import Console

from eth2genesis.exceptions import ExecutionBlockError
from eth2genesis.execution.block import ZERO_HASH32, ExecutionBlock
from eth2genesis.execution.genesis_config import EthGenesis
from eth2genesis.execution.header import difficulty_to_prev_randao, placeholder_header, translate_block
from eth2genesis.execution.json_block import load_block_file
from eth2genesis.execution.rpc import fetch_latest_block

BLOCK_FILE = "block-file"
RPC = "rpc"
ETH_GENESIS = "eth-genesis"
PLACEHOLDER = "placeholder"


class ExecutionSource(NamedTuple):
    kind: str
    # None for the placeholder, when there is no execution chain yet
    block: Optional[ExecutionBlock]
    prev_randao: bytes


def select_execution_source(spec,
                            block_file: Optional[Union[str, Path]] = None,
                            rpc_url: Optional[str] = None,
                            eth_genesis: Optional[EthGenesis] = None,
                            session: Optional[requests.Session] = None,
                            console: Optional[Console] = None) -> ExecutionSource:
    """
    Picks the first available execution block source, in order:
    a block file, an execution node, an execution genesis config,
    and for bellatrix only, a placeholder without a block.
    """
    if console is None:
        console = Console()
    if block_file:
        console.print(f"loading execution block from {block_file}")
        block = load_block_file(block_file)
        return ExecutionSource(BLOCK_FILE, block, difficulty_to_prev_randao(block.difficulty))
    if rpc_url:
        console.print(f"fetching latest execution block from {rpc_url}")
        block = fetch_latest_block(rpc_url, session=session)
        return ExecutionSource(RPC, block, difficulty_to_prev_randao(block.difficulty))
    if eth_genesis is not None:
        console.print("using execution genesis config to create and embed ExecutionPayloadHeader in genesis state")
        return ExecutionSource(ETH_GENESIS, eth_genesis.to_block(), ZERO_HASH32)
    if spec.fork.capabilities.withdrawals:
        raise ExecutionBlockError(
            f"{spec.fork} genesis needs an execution block: "
            "give a block file, an execution node RPC or an execution genesis config"
        )
    console.print("no execution config found, using eth1 block hash and timestamp, "
                  "with a placeholder ExecutionPayloadHeader (no PoW->PoS transition yet in execution layer)")
    return ExecutionSource(PLACEHOLDER, None, ZERO_HASH32)


def execution_header_of(spec, source: ExecutionSource, eth1_block_hash: bytes, eth1_timestamp: int) -> Tuple:
    """
    Returns the execution payload header and the eth1 block hash to put in the genesis state.
    The block hash of a real source replaces ``eth1_block_hash``.
    """
    if source.block is None:
        return placeholder_header(spec, eth1_block_hash, eth1_timestamp), eth1_block_hash
    header = translate_block(spec, source.block, source.prev_randao)
    return header, source.block.hash


def resolve_eth1_timestamp(spec, match_genesis_time: bool, eth_genesis: Optional[EthGenesis],
                           timestamp: int, console: Optional[Console] = None) -> int:
    if match_genesis_time and eth_genesis is not None:
        return eth_genesis.timestamp
    if spec.config.MIN_GENESIS_TIME != 0:
        if console is not None:
            console.print("using MIN_GENESIS_TIME of the consensus config for the genesis timestamp")
        return spec.config.MIN_GENESIS_TIME
    return timestamp
