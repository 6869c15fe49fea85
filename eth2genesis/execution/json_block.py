import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from eth_hash.auto import keccak

from eth2genesis.exceptions import ExecutionBlockError
from eth2genesis.execution.block import (
    ExecutionBlock,
    ExecutionWithdrawal,
    compute_trie_root_from_indexed_data,
    get_withdrawal_rlp,
)
from eth2genesis.utils.rlp import (
    ACCESS_LIST_TX_TYPE,
    BLOB_TX_TYPE,
    LEGACY_TX_TYPE,
    SET_CODE_TX_TYPE,
    TRANSACTION_SEDES,
    AccountAccesses,
    Authorization,
    encode_transaction,
)


def parse_quantity(value: Any, name: str = "value") -> int:
    """
    Parses a JSON quantity: an integer, a 0x-prefixed hex string, or a decimal string.
    """
    if isinstance(value, bool):
        raise ExecutionBlockError(f"{name} is not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            if value.startswith(("0x", "0X")):
                return int(value[2:], 16) if len(value) > 2 else 0
            return int(value, 10)
        except ValueError:
            pass
    raise ExecutionBlockError(f"{name} is not a quantity: {value!r}")


def parse_data(value: Any, name: str = "value", length: Optional[int] = None) -> bytes:
    if not isinstance(value, str):
        raise ExecutionBlockError(f"{name} is not hex data: {value!r}")
    hex_str = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        data = bytes.fromhex(hex_str)
    except ValueError:
        raise ExecutionBlockError(f"{name} is not hex data: {value!r}") from None
    if length is not None and len(data) != length:
        raise ExecutionBlockError(f"{name} must be {length} bytes, got {len(data)}")
    return data


def _optional(obj: Dict[str, Any], key: str, parse, **kwargs):
    value = obj.get(key)
    if value is None:
        return None
    return parse(value, key, **kwargs)


def _required(obj: Dict[str, Any], key: str, parse, **kwargs):
    if obj.get(key) is None:
        raise ExecutionBlockError(f"block is missing {key}")
    return parse(obj[key], key, **kwargs)


def _access_list(tx: Dict[str, Any]) -> List[AccountAccesses]:
    return [
        AccountAccesses(
            account=parse_data(entry["address"], "accessList.address", 20),
            storage_keys=[parse_data(key, "accessList.storageKeys", 32) for key in entry.get("storageKeys", [])],
        )
        for entry in tx.get("accessList") or []
    ]


def _authorization_list(tx: Dict[str, Any]) -> List[Authorization]:
    authorizations = []
    for auth in tx.get("authorizationList") or []:
        y_parity = auth.get("yParity", auth.get("v"))
        authorizations.append(Authorization(
            chain_id=parse_quantity(auth["chainId"], "authorization.chainId"),
            address=parse_data(auth["address"], "authorization.address", 20),
            nonce=parse_quantity(auth["nonce"], "authorization.nonce"),
            y_parity=parse_quantity(y_parity, "authorization.yParity"),
            r=parse_quantity(auth["r"], "authorization.r"),
            s=parse_quantity(auth["s"], "authorization.s"),
        ))
    return authorizations


def transaction_from_json(tx: Dict[str, Any]) -> bytes:
    """
    Returns the canonical binary form of a JSON-RPC transaction object.
    """
    if not isinstance(tx, dict):
        raise ExecutionBlockError("block transactions must be full transaction objects, not hashes")
    tx_type = parse_quantity(tx.get("type", "0x0"), "type")
    if tx_type not in TRANSACTION_SEDES:
        raise ExecutionBlockError(f"unsupported transaction type {tx_type}")
    to = tx.get("to")
    common = dict(
        nonce=parse_quantity(tx["nonce"], "nonce"),
        gas_limit=parse_quantity(tx["gas"], "gas"),
        to=b"" if to is None else parse_data(to, "to", 20),
        value=parse_quantity(tx["value"], "value"),
        data=parse_data(tx.get("input", tx.get("data", "0x")), "input"),
        r=parse_quantity(tx["r"], "r"),
        s=parse_quantity(tx["s"], "s"),
    )
    if tx_type == LEGACY_TX_TYPE:
        fields = dict(gas_price=parse_quantity(tx["gasPrice"], "gasPrice"), v=parse_quantity(tx["v"], "v"))
    else:
        fields = dict(
            chain_id=parse_quantity(tx["chainId"], "chainId"),
            access_list=_access_list(tx),
            y_parity=parse_quantity(tx.get("yParity", tx.get("v")), "yParity"),
        )
        if tx_type == ACCESS_LIST_TX_TYPE:
            fields["gas_price"] = parse_quantity(tx["gasPrice"], "gasPrice")
        else:
            fields["max_priority_fee_per_gas"] = parse_quantity(tx["maxPriorityFeePerGas"], "maxPriorityFeePerGas")
            fields["max_fee_per_gas"] = parse_quantity(tx["maxFeePerGas"], "maxFeePerGas")
        if tx_type == BLOB_TX_TYPE:
            fields["max_fee_per_blob_gas"] = parse_quantity(tx["maxFeePerBlobGas"], "maxFeePerBlobGas")
            fields["blob_versioned_hashes"] = [
                parse_data(h, "blobVersionedHashes", 32) for h in tx.get("blobVersionedHashes") or []
            ]
        if tx_type == SET_CODE_TX_TYPE:
            fields["authorization_list"] = _authorization_list(tx)
    sedes = TRANSACTION_SEDES[tx_type]
    encoded = encode_transaction(tx_type, sedes(**common, **fields))
    if tx.get("hash") is not None and keccak(encoded) != parse_data(tx["hash"], "hash", 32):
        raise ExecutionBlockError(f"re-encoded transaction does not match its hash {tx['hash']}")
    return encoded


def withdrawal_from_json(w: Dict[str, Any]) -> ExecutionWithdrawal:
    return ExecutionWithdrawal(
        index=parse_quantity(w["index"], "withdrawal.index"),
        validator_index=parse_quantity(w["validatorIndex"], "withdrawal.validatorIndex"),
        address=parse_data(w["address"], "withdrawal.address", 20),
        amount=parse_quantity(w["amount"], "withdrawal.amount"),
    )


def block_from_json(obj: Dict[str, Any]) -> ExecutionBlock:
    """
    Parses an execution block as returned by ``eth_getBlockByNumber(n, true)``.
    The declared block hash, if any, must match the hash of the parsed header.
    """
    if not isinstance(obj, dict):
        raise ExecutionBlockError("block must be a JSON object")
    try:
        transactions = [transaction_from_json(tx) for tx in obj.get("transactions") or []]
        withdrawals = None
        if obj.get("withdrawals") is not None:
            withdrawals = [withdrawal_from_json(w) for w in obj["withdrawals"]]
    except KeyError as e:
        raise ExecutionBlockError(f"block body is missing field {e}") from None

    block = ExecutionBlock(
        parent_hash=_required(obj, "parentHash", parse_data, length=32),
        ommers_hash=_required(obj, "sha3Uncles", parse_data, length=32),
        coinbase=_required(obj, "miner", parse_data, length=20),
        state_root=_required(obj, "stateRoot", parse_data, length=32),
        transactions_root=_required(obj, "transactionsRoot", parse_data, length=32),
        receipts_root=_required(obj, "receiptsRoot", parse_data, length=32),
        logs_bloom=_required(obj, "logsBloom", parse_data, length=256),
        difficulty=_required(obj, "difficulty", parse_quantity),
        number=_required(obj, "number", parse_quantity),
        gas_limit=_required(obj, "gasLimit", parse_quantity),
        gas_used=_required(obj, "gasUsed", parse_quantity),
        timestamp=_required(obj, "timestamp", parse_quantity),
        extra_data=_required(obj, "extraData", parse_data),
        mix_hash=_required(obj, "mixHash", parse_data, length=32),
        nonce=_required(obj, "nonce", parse_data, length=8),
        base_fee_per_gas=_optional(obj, "baseFeePerGas", parse_quantity),
        withdrawals_root=_optional(obj, "withdrawalsRoot", parse_data, length=32),
        blob_gas_used=_optional(obj, "blobGasUsed", parse_quantity),
        excess_blob_gas=_optional(obj, "excessBlobGas", parse_quantity),
        parent_beacon_block_root=_optional(obj, "parentBeaconBlockRoot", parse_data, length=32),
        requests_hash=_optional(obj, "requestsHash", parse_data, length=32),
        transactions=transactions,
        withdrawals=withdrawals,
    )

    if compute_trie_root_from_indexed_data(block.transactions) != block.transactions_root:
        raise ExecutionBlockError("transactions do not match the transactions root of the block")
    if block.withdrawals is not None and block.withdrawals_root is not None:
        withdrawals_rlp = [get_withdrawal_rlp(w) for w in block.withdrawals]
        if compute_trie_root_from_indexed_data(withdrawals_rlp) != block.withdrawals_root:
            raise ExecutionBlockError("withdrawals do not match the withdrawals root of the block")
    if obj.get("hash") is not None:
        declared = parse_data(obj["hash"], "hash", 32)
        if declared != block.hash:
            raise ExecutionBlockError(
                f"block hash {obj['hash']} does not match the hash of its header 0x{block.hash.hex()}"
            )
    return block


def load_block_file(path: Union[str, Path]) -> ExecutionBlock:
    """
    Loads a block from a JSON file, either a JSON-RPC response ``{"result": {...}}`` or a bare block.
    """
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ExecutionBlockError(f"block file {path} is not valid JSON: {e}") from e
    if isinstance(data, dict) and "result" in data:
        data = data["result"]
    if data is None:
        raise ExecutionBlockError(f"block file {path} holds no block")
    return block_from_json(data)
