from dataclasses import dataclass, field
from hashlib import sha256
from typing import List, NamedTuple, Optional, Sequence

from eth_hash.auto import keccak
from rlp import encode
from rlp.sedes import Binary, List as RLPList, big_endian_int
from trie import HexaryTrie

EMPTY_UNCLE_HASH = bytes.fromhex("1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347")
EMPTY_TRIE_ROOT = bytes.fromhex("56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421")
# https://eips.ethereum.org/EIPS/eip-7685
EMPTY_REQUESTS_HASH = sha256(b"").digest()

ZERO_HASH32 = b"\x00" * 32


class ExecutionWithdrawal(NamedTuple):
    index: int
    validator_index: int
    address: bytes
    amount: int  # Gwei


@dataclass
class ExecutionBlock:
    """
    An execution-layer block: its header fields, and the transactions (canonical binary form)
    and withdrawals of its body. Fields added by later execution forks are ``None`` when absent.
    """
    parent_hash: bytes = ZERO_HASH32
    ommers_hash: bytes = EMPTY_UNCLE_HASH
    coinbase: bytes = b"\x00" * 20
    state_root: bytes = EMPTY_TRIE_ROOT
    transactions_root: bytes = EMPTY_TRIE_ROOT
    receipts_root: bytes = EMPTY_TRIE_ROOT
    logs_bloom: bytes = b"\x00" * 256
    difficulty: int = 0
    number: int = 0
    gas_limit: int = 0
    gas_used: int = 0
    timestamp: int = 0
    extra_data: bytes = b""
    mix_hash: bytes = ZERO_HASH32
    nonce: bytes = b"\x00" * 8
    base_fee_per_gas: Optional[int] = None
    withdrawals_root: Optional[bytes] = None
    blob_gas_used: Optional[int] = None
    excess_blob_gas: Optional[int] = None
    parent_beacon_block_root: Optional[bytes] = None
    requests_hash: Optional[bytes] = None
    transactions: List[bytes] = field(default_factory=list)
    withdrawals: Optional[List[ExecutionWithdrawal]] = None

    def header_rlp(self) -> bytes:
        header_rlp = [
            (Binary(32, 32), self.parent_hash),
            (Binary(32, 32), self.ommers_hash),
            (Binary(20, 20), self.coinbase),
            (Binary(32, 32), self.state_root),
            (Binary(32, 32), self.transactions_root),
            (Binary(32, 32), self.receipts_root),
            (Binary(256, 256), self.logs_bloom),
            (big_endian_int, self.difficulty),
            (big_endian_int, self.number),
            (big_endian_int, self.gas_limit),
            (big_endian_int, self.gas_used),
            (big_endian_int, self.timestamp),
            (Binary(0, 32 * 1024), self.extra_data),
            (Binary(32, 32), self.mix_hash),
            (Binary(8, 8), self.nonce),
        ]
        # Optional fields are appended in fork order, and stop at the first absent one
        optional = [
            (big_endian_int, self.base_fee_per_gas),
            (Binary(32, 32), self.withdrawals_root),
            (big_endian_int, self.blob_gas_used),
            (big_endian_int, self.excess_blob_gas),
            (Binary(32, 32), self.parent_beacon_block_root),
            (Binary(32, 32), self.requests_hash),
        ]
        for schema, value in optional:
            if value is None:
                break
            header_rlp.append((schema, value))

        sedes = RLPList([schema for schema, _ in header_rlp])
        values = [value for _, value in header_rlp]
        return encode(values, sedes)

    @property
    def hash(self) -> bytes:
        return keccak(self.header_rlp())


# https://eips.ethereum.org/EIPS/eip-2718
def compute_trie_root_from_indexed_data(data: Sequence[bytes]) -> bytes:
    """
    Computes the root hash of `patriciaTrie(rlp(Index) => Data)` for a data array.
    """
    t = HexaryTrie(db={})
    for i, obj in enumerate(data):
        k = encode(i, big_endian_int)
        t.set(k, obj)  # Implicitly skipped if `obj == b''` (invalid RLP)
    return t.root_hash


# https://eips.ethereum.org/EIPS/eip-4895
def get_withdrawal_rlp(withdrawal: ExecutionWithdrawal) -> bytes:
    withdrawal_rlp = [
        # index
        (big_endian_int, withdrawal.index),
        # validator_index
        (big_endian_int, withdrawal.validator_index),
        # address
        (Binary(20, 20), withdrawal.address),
        # amount
        (big_endian_int, withdrawal.amount),
    ]

    sedes = RLPList([schema for schema, _ in withdrawal_rlp])
    values = [value for _, value in withdrawal_rlp]
    return encode(values, sedes)
