from typing import Type, TypeVar

from remerkleable.basic import uint
from remerkleable.byte_arrays import Bytes32
from remerkleable.core import View

V = TypeVar("V", bound=View)


def serialize(obj: View) -> bytes:
    return obj.encode_bytes()


def deserialize(typ: Type[V], data: bytes) -> V:
    return typ.decode_bytes(data)


def hash_tree_root(obj: View) -> Bytes32:
    return Bytes32(obj.get_backing().merkle_root())


def uint_to_bytes(n: uint) -> bytes:
    return serialize(n)


def bytes_to_uint64(data: bytes) -> int:
    """
    Return the integer deserialization of ``data`` interpreted as little-endian.
    """
    return int.from_bytes(data, "little")
