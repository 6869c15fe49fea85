"""
Translation of an execution block into the ``ExecutionPayloadHeader`` embedded in a genesis state.
"""
from eth2genesis.containers import Withdrawal
from eth2genesis.exceptions import ExecutionBlockError
from eth2genesis.execution.block import EMPTY_REQUESTS_HASH, ExecutionBlock
from eth2genesis.utils.ssz.ssz_impl import hash_tree_root


def difficulty_to_prev_randao(difficulty: int) -> bytes:
    return difficulty.to_bytes(32, "big")


def validate_block(spec, block: ExecutionBlock) -> None:
    if len(block.extra_data) > spec.MAX_EXTRA_DATA_BYTES:
        raise ExecutionBlockError(
            f"extra data of {len(block.extra_data)} bytes is longer than "
            f"MAX_EXTRA_DATA_BYTES ({spec.MAX_EXTRA_DATA_BYTES})"
        )
    capabilities = spec.fork.capabilities
    if capabilities.blob_gas:
        if block.blob_gas_used is None:
            raise ExecutionBlockError(f"{spec.fork} execution block is missing blobGasUsed")
        if block.excess_blob_gas is None:
            raise ExecutionBlockError(f"{spec.fork} execution block is missing excessBlobGas")
    if capabilities.execution_requests:
        if block.requests_hash is None:
            raise ExecutionBlockError(f"{spec.fork} execution block is missing requestsHash")
        if block.requests_hash != EMPTY_REQUESTS_HASH:
            raise ExecutionBlockError(
                f"requestsHash 0x{block.requests_hash.hex()} is not the empty requests hash "
                f"0x{EMPTY_REQUESTS_HASH.hex()}, a genesis block has no execution requests"
            )


def translate_block(spec, block: ExecutionBlock, prev_randao: bytes):
    """
    Returns the execution payload header of ``spec.fork`` for ``block``.
    The transactions and withdrawals commitments are recomputed as SSZ roots.
    """
    if not spec.fork.capabilities.execution_payload:
        raise ExecutionBlockError(f"{spec.fork} has no execution payload")
    validate_block(spec, block)
    types = spec.types
    if len(block.transactions) > spec.MAX_TRANSACTIONS_PER_PAYLOAD:
        raise ExecutionBlockError(
            f"block has {len(block.transactions)} transactions, "
            f"more than MAX_TRANSACTIONS_PER_PAYLOAD ({spec.MAX_TRANSACTIONS_PER_PAYLOAD})"
        )
    for i, tx in enumerate(block.transactions):
        if len(tx) > spec.MAX_BYTES_PER_TRANSACTION:
            raise ExecutionBlockError(f"transaction {i} is longer than MAX_BYTES_PER_TRANSACTION")

    header = types.ExecutionPayloadHeader(
        parent_hash=block.parent_hash,
        fee_recipient=block.coinbase,
        state_root=block.state_root,
        receipts_root=block.receipts_root,
        logs_bloom=block.logs_bloom,
        prev_randao=prev_randao,
        block_number=block.number,
        gas_limit=block.gas_limit,
        gas_used=block.gas_used,
        timestamp=block.timestamp,
        extra_data=block.extra_data,
        base_fee_per_gas=block.base_fee_per_gas or 0,
        block_hash=block.hash,
        transactions_root=hash_tree_root(types.Transactions([types.Transaction(tx) for tx in block.transactions])),
    )
    if spec.fork.capabilities.withdrawals and block.withdrawals is not None:
        if len(block.withdrawals) > spec.MAX_WITHDRAWALS_PER_PAYLOAD:
            raise ExecutionBlockError(
                f"block has {len(block.withdrawals)} withdrawals, "
                f"more than MAX_WITHDRAWALS_PER_PAYLOAD ({spec.MAX_WITHDRAWALS_PER_PAYLOAD})"
            )
        withdrawals = types.Withdrawals([
            Withdrawal(index=w.index, validator_index=w.validator_index, address=w.address, amount=w.amount)
            for w in block.withdrawals
        ])
        header.withdrawals_root = hash_tree_root(withdrawals)
    if spec.fork.capabilities.blob_gas:
        header.blob_gas_used = block.blob_gas_used
        header.excess_blob_gas = block.excess_blob_gas
    return header


def placeholder_header(spec, block_hash: bytes, timestamp: int):
    """
    A header for a chain without an execution layer yet: only the block hash, the timestamp
    and the commitment to an empty transactions list are set.
    """
    if spec.fork.capabilities.withdrawals:
        raise ExecutionBlockError(f"{spec.fork} genesis needs an execution block")
    if len(block_hash) != 32:
        raise ExecutionBlockError(f"eth1 block hash must be 32 bytes, got {len(block_hash)}")
    types = spec.types
    return types.ExecutionPayloadHeader(
        block_hash=block_hash,
        timestamp=timestamp,
        transactions_root=hash_tree_root(types.Transactions()),
    )
