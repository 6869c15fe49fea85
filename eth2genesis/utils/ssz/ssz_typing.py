# ruff: noqa: F401

from remerkleable.basic import (
    bit,
    boolean,
    byte,
    uint,
    uint8,
    uint16,
    uint32,
    uint64,
    uint128,
    uint256,
)
from remerkleable.bitfields import Bitlist, Bitvector
from remerkleable.byte_arrays import (
    ByteList,
    Bytes1,
    Bytes4,
    Bytes8,
    Bytes32,
    Bytes48,
    Bytes96,
    ByteVector,
)
from remerkleable.complex import Container, List, Vector
from remerkleable.core import BasicView, View

Bytes20 = ByteVector[20]  # type: ignore
