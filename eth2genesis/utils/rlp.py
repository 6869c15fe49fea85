import rlp
from rlp.sedes import (
    Binary,
    CountableList,
    big_endian_int,
    binary,
)

address = Binary.fixed_length(20, allow_empty=True)
hash32 = Binary.fixed_length(32)

LEGACY_TX_TYPE = 0x00
ACCESS_LIST_TX_TYPE = 0x01
DYNAMIC_FEE_TX_TYPE = 0x02
BLOB_TX_TYPE = 0x03
SET_CODE_TX_TYPE = 0x04


class AccountAccesses(rlp.Serializable):
    fields = [
        ('account', address),
        ('storage_keys', CountableList(hash32)),
    ]


class Authorization(rlp.Serializable):
    fields = [
        ('chain_id', big_endian_int),
        ('address', address),
        ('nonce', big_endian_int),
        ('y_parity', big_endian_int),
        ('r', big_endian_int),
        ('s', big_endian_int),
    ]


class LegacyTransaction(rlp.Serializable):
    fields = [
        ('nonce', big_endian_int),
        ('gas_price', big_endian_int),
        ('gas_limit', big_endian_int),
        ('to', address),
        ('value', big_endian_int),
        ('data', binary),
        ('v', big_endian_int),
        ('r', big_endian_int),
        ('s', big_endian_int),
    ]


# https://eips.ethereum.org/EIPS/eip-2930
class SignedAccessListTransaction(rlp.Serializable):
    fields = [
        ('chain_id', big_endian_int),
        ('nonce', big_endian_int),
        ('gas_price', big_endian_int),
        ('gas_limit', big_endian_int),
        ('to', address),
        ('value', big_endian_int),
        ('data', binary),
        ('access_list', CountableList(AccountAccesses)),
        ('y_parity', big_endian_int),
        ('r', big_endian_int),
        ('s', big_endian_int),
    ]


# https://eips.ethereum.org/EIPS/eip-1559
class SignedDynamicFeeTransaction(rlp.Serializable):
    fields = [
        ('chain_id', big_endian_int),
        ('nonce', big_endian_int),
        ('max_priority_fee_per_gas', big_endian_int),
        ('max_fee_per_gas', big_endian_int),
        ('gas_limit', big_endian_int),
        ('to', address),
        ('value', big_endian_int),
        ('data', binary),
        ('access_list', CountableList(AccountAccesses)),
        ('y_parity', big_endian_int),
        ('r', big_endian_int),
        ('s', big_endian_int),
    ]


# https://eips.ethereum.org/EIPS/eip-4844
class SignedBlobTransaction(rlp.Serializable):
    fields = [
        ('chain_id', big_endian_int),
        ('nonce', big_endian_int),
        ('max_priority_fee_per_gas', big_endian_int),
        ('max_fee_per_gas', big_endian_int),
        ('gas_limit', big_endian_int),
        ('to', address),
        ('value', big_endian_int),
        ('data', binary),
        ('access_list', CountableList(AccountAccesses)),
        ('max_fee_per_blob_gas', big_endian_int),
        ('blob_versioned_hashes', CountableList(hash32)),
        ('y_parity', big_endian_int),
        ('r', big_endian_int),
        ('s', big_endian_int),
    ]


# https://eips.ethereum.org/EIPS/eip-7702
class SignedSetCodeTransaction(rlp.Serializable):
    fields = [
        ('chain_id', big_endian_int),
        ('nonce', big_endian_int),
        ('max_priority_fee_per_gas', big_endian_int),
        ('max_fee_per_gas', big_endian_int),
        ('gas_limit', big_endian_int),
        ('to', address),
        ('value', big_endian_int),
        ('data', binary),
        ('access_list', CountableList(AccountAccesses)),
        ('authorization_list', CountableList(Authorization)),
        ('y_parity', big_endian_int),
        ('r', big_endian_int),
        ('s', big_endian_int),
    ]


TRANSACTION_SEDES = {
    LEGACY_TX_TYPE: LegacyTransaction,
    ACCESS_LIST_TX_TYPE: SignedAccessListTransaction,
    DYNAMIC_FEE_TX_TYPE: SignedDynamicFeeTransaction,
    BLOB_TX_TYPE: SignedBlobTransaction,
    SET_CODE_TX_TYPE: SignedSetCodeTransaction,
}


def encode_transaction(tx_type: int, tx: rlp.Serializable) -> bytes:
    """
    Returns the canonical binary form of a transaction:
    plain RLP for legacy transactions, ``type || rlp(payload)`` for typed ones (EIP-2718).
    """
    encoded = rlp.encode(tx)
    if tx_type == LEGACY_TX_TYPE:
        return encoded
    return bytes([tx_type]) + encoded
