"""
Builds the genesis block of an execution chain from a geth-style ``genesis.json``,
with the same header defaults as geth.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import rlp
from eth_hash.auto import keccak
from rlp.sedes import Binary, List as RLPList, big_endian_int
from trie import HexaryTrie

from eth2genesis.exceptions import ExecutionBlockError
from eth2genesis.execution.block import (
    EMPTY_REQUESTS_HASH,
    EMPTY_TRIE_ROOT,
    ZERO_HASH32,
    ExecutionBlock,
)
from eth2genesis.execution.json_block import parse_data, parse_quantity

GENESIS_GAS_LIMIT = 4712388
GENESIS_DIFFICULTY = 131072
INITIAL_BASE_FEE = 1_000_000_000

account_sedes = RLPList([big_endian_int, big_endian_int, Binary(32, 32), Binary(32, 32)])


@dataclass
class GenesisAccount:
    balance: int = 0
    nonce: int = 0
    code: bytes = b""
    storage: Dict[bytes, bytes] = field(default_factory=dict)

    def storage_root(self) -> bytes:
        t = HexaryTrie(db={})
        for slot, value in self.storage.items():
            stripped = value.lstrip(b"\x00")
            if not stripped:
                # zero values are not stored
                continue
            t.set(keccak(slot), rlp.encode(stripped))
        return t.root_hash

    def encode_rlp(self) -> bytes:
        return rlp.encode([self.nonce, self.balance, self.storage_root(), keccak(self.code)], account_sedes)


def _hash32(value: str, name: str) -> bytes:
    # storage keys and values may be given without leading zeroes
    data = parse_data(value, name)
    if len(data) > 32:
        raise ExecutionBlockError(f"{name} is longer than 32 bytes")
    return data.rjust(32, b"\x00")


def parse_alloc(alloc: Dict[str, Any]) -> Dict[bytes, GenesisAccount]:
    accounts = {}
    for addr, acc in alloc.items():
        address = parse_data(addr, "alloc address", 20)
        accounts[address] = GenesisAccount(
            balance=parse_quantity(acc.get("balance", 0), "alloc balance"),
            nonce=parse_quantity(acc.get("nonce", 0), "alloc nonce"),
            code=parse_data(acc.get("code", "0x"), "alloc code"),
            storage={
                _hash32(k, "alloc storage key"): _hash32(v, "alloc storage value")
                for k, v in (acc.get("storage") or {}).items()
            },
        )
    return accounts


def compute_state_root(accounts: Dict[bytes, GenesisAccount]) -> bytes:
    """
    Returns the root of the secure Merkle-Patricia trie of the accounts.
    """
    if not accounts:
        return EMPTY_TRIE_ROOT
    t = HexaryTrie(db={})
    for address, account in accounts.items():
        t.set(keccak(address), account.encode_rlp())
    return t.root_hash


@dataclass
class EthGenesis:
    chain_config: Dict[str, Any]
    nonce: int = 0
    timestamp: int = 0
    extra_data: bytes = b""
    gas_limit: int = 0
    difficulty: Optional[int] = None
    mix_hash: bytes = ZERO_HASH32
    coinbase: bytes = b"\x00" * 20
    alloc: Dict[bytes, GenesisAccount] = field(default_factory=dict)
    number: int = 0
    gas_used: int = 0
    parent_hash: bytes = ZERO_HASH32
    base_fee_per_gas: Optional[int] = None
    excess_blob_gas: Optional[int] = None
    blob_gas_used: Optional[int] = None

    def _is_block_fork(self, key: str) -> bool:
        activation = self.chain_config.get(key)
        return activation is not None and parse_quantity(activation, key) <= self.number

    def _is_time_fork(self, key: str) -> bool:
        activation = self.chain_config.get(key)
        return self.is_london() and activation is not None and parse_quantity(activation, key) <= self.timestamp

    def is_london(self) -> bool:
        return self._is_block_fork("londonBlock")

    def is_shanghai(self) -> bool:
        return self._is_time_fork("shanghaiTime")

    def is_cancun(self) -> bool:
        return self._is_time_fork("cancunTime")

    def is_prague(self) -> bool:
        return self._is_time_fork("pragueTime")

    def to_block(self) -> ExecutionBlock:
        block = ExecutionBlock(
            parent_hash=self.parent_hash,
            coinbase=self.coinbase,
            state_root=compute_state_root(self.alloc),
            number=self.number,
            gas_limit=self.gas_limit or GENESIS_GAS_LIMIT,
            gas_used=self.gas_used,
            timestamp=self.timestamp,
            extra_data=self.extra_data,
            mix_hash=self.mix_hash,
            nonce=self.nonce.to_bytes(8, "big"),
        )
        if self.difficulty is not None:
            block.difficulty = self.difficulty
        elif "ethash" not in self.chain_config:
            block.difficulty = 0
        elif self.mix_hash == ZERO_HASH32:
            block.difficulty = GENESIS_DIFFICULTY
        if self.is_london():
            block.base_fee_per_gas = INITIAL_BASE_FEE if self.base_fee_per_gas is None else self.base_fee_per_gas
        if self.is_shanghai():
            block.withdrawals_root = EMPTY_TRIE_ROOT
            block.withdrawals = []
        if self.is_cancun():
            block.parent_beacon_block_root = ZERO_HASH32
            block.excess_blob_gas = self.excess_blob_gas or 0
            block.blob_gas_used = self.blob_gas_used or 0
        if self.is_prague():
            block.requests_hash = EMPTY_REQUESTS_HASH
        return block


def parse_eth_genesis(data: Dict[str, Any]) -> EthGenesis:
    if not isinstance(data, dict):
        raise ExecutionBlockError("execution genesis config must be a JSON object")

    def optional_quantity(key):
        return None if data.get(key) is None else parse_quantity(data[key], key)

    chain_config = data.get("config") or {}
    if not isinstance(chain_config, dict):
        raise ExecutionBlockError("execution genesis config has an invalid 'config' section")
    return EthGenesis(
        chain_config=chain_config,
        nonce=parse_quantity(data.get("nonce", 0), "nonce"),
        timestamp=parse_quantity(data.get("timestamp", 0), "timestamp"),
        extra_data=parse_data(data.get("extraData") or "0x", "extraData"),
        gas_limit=parse_quantity(data.get("gasLimit", 0), "gasLimit"),
        difficulty=optional_quantity("difficulty"),
        mix_hash=parse_data(data.get("mixHash") or "0x" + "00" * 32, "mixHash", 32),
        coinbase=parse_data(data.get("coinbase") or "0x" + "00" * 20, "coinbase", 20),
        alloc=parse_alloc(data.get("alloc") or {}),
        number=parse_quantity(data.get("number", 0), "number"),
        gas_used=parse_quantity(data.get("gasUsed", 0), "gasUsed"),
        parent_hash=parse_data(data.get("parentHash") or "0x" + "00" * 32, "parentHash", 32),
        base_fee_per_gas=optional_quantity("baseFeePerGas"),
        excess_blob_gas=optional_quantity("excessBlobGas"),
        blob_gas_used=optional_quantity("blobGasUsed"),
    )


def load_eth_genesis(path: Union[str, Path]) -> EthGenesis:
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ExecutionBlockError(f"execution genesis config {path} is not valid JSON: {e}") from e
    return parse_eth_genesis(data)
