from typing import Any, Dict, List, Sequence, Tuple

from eth_hash.auto import keccak

from eth2genesis.execution.block import (
    EMPTY_REQUESTS_HASH,
    ZERO_HASH32,
    ExecutionBlock,
    ExecutionWithdrawal,
    compute_trie_root_from_indexed_data,
    get_withdrawal_rlp,
)
from eth2genesis.utils.rlp import (
    DYNAMIC_FEE_TX_TYPE,
    LEGACY_TX_TYPE,
    AccountAccesses,
    LegacyTransaction,
    SignedDynamicFeeTransaction,
    encode_transaction,
)


def _hex(data: bytes) -> str:
    return "0x" + data.hex()


def legacy_transaction(nonce: int = 0) -> Tuple[Dict[str, Any], bytes]:
    """
    Returns a legacy transaction as JSON-RPC object, and its canonical encoding.
    """
    to = b"\x11" * 20
    tx = LegacyTransaction(
        nonce=nonce, gas_price=10**9, gas_limit=21000, to=to, value=1, data=b"", v=27, r=1, s=2,
    )
    encoded = encode_transaction(LEGACY_TX_TYPE, tx)
    tx_json = {
        "type": "0x0",
        "nonce": hex(nonce),
        "gasPrice": hex(10**9),
        "gas": hex(21000),
        "to": _hex(to),
        "value": "0x1",
        "input": "0x",
        "v": "0x1b",
        "r": "0x1",
        "s": "0x2",
        "hash": _hex(keccak(encoded)),
    }
    return tx_json, encoded


def dynamic_fee_transaction(nonce: int = 0) -> Tuple[Dict[str, Any], bytes]:
    to = b"\x22" * 20
    storage_key = b"\x00" * 31 + b"\x01"
    tx = SignedDynamicFeeTransaction(
        chain_id=1337,
        nonce=nonce,
        max_priority_fee_per_gas=10**9,
        max_fee_per_gas=2 * 10**9,
        gas_limit=50000,
        to=to,
        value=0,
        data=b"\xca\xfe",
        access_list=[AccountAccesses(account=to, storage_keys=[storage_key])],
        y_parity=1,
        r=3,
        s=4,
    )
    encoded = encode_transaction(DYNAMIC_FEE_TX_TYPE, tx)
    tx_json = {
        "type": "0x2",
        "chainId": hex(1337),
        "nonce": hex(nonce),
        "maxPriorityFeePerGas": hex(10**9),
        "maxFeePerGas": hex(2 * 10**9),
        "gas": hex(50000),
        "to": _hex(to),
        "value": "0x0",
        "input": "0xcafe",
        "accessList": [{"address": _hex(to), "storageKeys": [_hex(storage_key)]}],
        "yParity": "0x1",
        "r": "0x3",
        "s": "0x4",
        "hash": _hex(keccak(encoded)),
    }
    return tx_json, encoded


def make_block(transactions: Sequence[bytes] = (),
               withdrawals: Sequence[ExecutionWithdrawal] = None,
               shanghai: bool = True, cancun: bool = True, prague: bool = True, **kwargs) -> ExecutionBlock:
    """
    A post-merge execution block, with the header fields of the enabled execution forks.
    """
    block = ExecutionBlock(
        parent_hash=b"\x01" * 32,
        coinbase=b"\x02" * 20,
        state_root=b"\x03" * 32,
        difficulty=0,
        number=100,
        gas_limit=30_000_000,
        gas_used=21000 * len(transactions),
        timestamp=1_700_000_000,
        extra_data=b"genesis",
        mix_hash=b"\x04" * 32,
        base_fee_per_gas=7,
        transactions=list(transactions),
        transactions_root=compute_trie_root_from_indexed_data(list(transactions)),
    )
    if shanghai:
        block.withdrawals = list(withdrawals or [])
        block.withdrawals_root = compute_trie_root_from_indexed_data(
            [get_withdrawal_rlp(w) for w in block.withdrawals]
        )
    if cancun:
        block.blob_gas_used = 0
        block.excess_blob_gas = 0
        block.parent_beacon_block_root = ZERO_HASH32
    if prague:
        block.requests_hash = EMPTY_REQUESTS_HASH
    for key, value in kwargs.items():
        setattr(block, key, value)
    return block


def block_to_json(block: ExecutionBlock, transactions_json: List[Dict[str, Any]] = ()) -> Dict[str, Any]:
    """
    Renders a block like ``eth_getBlockByNumber(n, true)`` does.
    """
    obj = {
        "hash": _hex(block.hash),
        "parentHash": _hex(block.parent_hash),
        "sha3Uncles": _hex(block.ommers_hash),
        "miner": _hex(block.coinbase),
        "stateRoot": _hex(block.state_root),
        "transactionsRoot": _hex(block.transactions_root),
        "receiptsRoot": _hex(block.receipts_root),
        "logsBloom": _hex(block.logs_bloom),
        "difficulty": hex(block.difficulty),
        "number": hex(block.number),
        "gasLimit": hex(block.gas_limit),
        "gasUsed": hex(block.gas_used),
        "timestamp": hex(block.timestamp),
        "extraData": _hex(block.extra_data),
        "mixHash": _hex(block.mix_hash),
        "nonce": _hex(block.nonce),
        "transactions": list(transactions_json),
        "uncles": [],
    }
    if block.base_fee_per_gas is not None:
        obj["baseFeePerGas"] = hex(block.base_fee_per_gas)
    if block.withdrawals_root is not None:
        obj["withdrawalsRoot"] = _hex(block.withdrawals_root)
    if block.withdrawals is not None:
        obj["withdrawals"] = [
            {
                "index": hex(w.index),
                "validatorIndex": hex(w.validator_index),
                "address": _hex(w.address),
                "amount": hex(w.amount),
            }
            for w in block.withdrawals
        ]
    if block.blob_gas_used is not None:
        obj["blobGasUsed"] = hex(block.blob_gas_used)
    if block.excess_blob_gas is not None:
        obj["excessBlobGas"] = hex(block.excess_blob_gas)
    if block.parent_beacon_block_root is not None:
        obj["parentBeaconBlockRoot"] = _hex(block.parent_beacon_block_root)
    if block.requests_hash is not None:
        obj["requestsHash"] = _hex(block.requests_hash)
    return obj


def eth_genesis_json(timestamp: int = 1_700_000_000, prague: bool = True, **overrides) -> Dict[str, Any]:
    """
    A geth genesis.json, with all forks up to cancun (and prague) active at genesis.
    """
    config = {
        "chainId": 1337,
        "homesteadBlock": 0,
        "eip150Block": 0,
        "eip155Block": 0,
        "eip158Block": 0,
        "byzantiumBlock": 0,
        "constantinopleBlock": 0,
        "petersburgBlock": 0,
        "istanbulBlock": 0,
        "berlinBlock": 0,
        "londonBlock": 0,
        "mergeNetsplitBlock": 0,
        "terminalTotalDifficulty": 0,
        "shanghaiTime": 0,
        "cancunTime": 0,
    }
    if prague:
        config["pragueTime"] = 0
    genesis = {
        "config": config,
        "nonce": "0x0",
        "timestamp": hex(timestamp),
        "extraData": "0x",
        "gasLimit": "0x1c9c380",
        "difficulty": "0x0",
        "mixHash": "0x" + "00" * 32,
        "coinbase": "0x" + "00" * 20,
        "alloc": {
            "0x" + "aa" * 20: {"balance": "0x3635c9adc5dea00000"},
        },
    }
    genesis.update(overrides)
    return genesis
