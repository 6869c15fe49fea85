"""
BLS12-381 key derivation from a seed, following EIP-2333 (tree KDF) and EIP-2334 (paths).
"""
from functools import lru_cache
from hashlib import sha256
from typing import List, Sequence, Tuple

from Crypto.Hash import SHA256
from Crypto.Protocol.KDF import HKDF

# Order of the BLS12-381 G1 subgroup
CURVE_ORDER = 52435875175126190479447740508185965837690552500527637822603658699938581184513

KEYGEN_SALT = b"BLS-SIG-KEYGEN-SALT-"
LAMPORT_CHUNKS = 255
LAMPORT_CHUNK_SIZE = 32

# EIP-2334 purpose and coin type of eth2 validator keys
PURPOSE = 12381
COIN_TYPE = 3600


def validator_key_path(index: int) -> str:
    return f"m/{PURPOSE}/{COIN_TYPE}/{index}/0/0"


def withdrawal_key_path(index: int) -> str:
    return f"m/{PURPOSE}/{COIN_TYPE}/{index}/0"


def _hkdf(ikm: bytes, salt: bytes, info: bytes, length: int) -> bytes:
    return HKDF(ikm, length, salt, SHA256, context=info)


def hkdf_mod_r(ikm: bytes, key_info: bytes = b"") -> int:
    """
    Hashes ``ikm`` to a non-zero secret key scalar.
    """
    length = 48  # ceil((3 * ceil(log2(r))) / 16)
    salt = KEYGEN_SALT
    sk = 0
    while sk == 0:
        salt = sha256(salt).digest()
        okm = _hkdf(ikm + b"\x00", salt, key_info + length.to_bytes(2, "big"), length)
        sk = int.from_bytes(okm, "big") % CURVE_ORDER
    return sk


def ikm_to_lamport_sk(ikm: bytes, salt: bytes) -> List[bytes]:
    okm = _hkdf(ikm, salt, b"", LAMPORT_CHUNKS * LAMPORT_CHUNK_SIZE)
    return [okm[i * LAMPORT_CHUNK_SIZE:(i + 1) * LAMPORT_CHUNK_SIZE] for i in range(LAMPORT_CHUNKS)]


def parent_sk_to_lamport_pk(parent_sk: int, index: int) -> bytes:
    salt = index.to_bytes(4, "big")
    ikm = parent_sk.to_bytes(32, "big")
    lamport_0 = ikm_to_lamport_sk(ikm, salt)
    not_ikm = bytes(b ^ 0xFF for b in ikm)
    lamport_1 = ikm_to_lamport_sk(not_ikm, salt)
    lamport_pk = b"".join(sha256(sk).digest() for sk in lamport_0 + lamport_1)
    return sha256(lamport_pk).digest()


def derive_master_sk(seed: bytes) -> int:
    if len(seed) < 32:
        raise ValueError(f"seed must be at least 32 bytes, got {len(seed)}")
    return hkdf_mod_r(seed)


def derive_child_sk(parent_sk: int, index: int) -> int:
    if not 0 <= index < 2**32:
        raise ValueError(f"child index {index} out of range")
    return hkdf_mod_r(parent_sk_to_lamport_pk(parent_sk, index))


def path_to_nodes(path: str) -> Sequence[int]:
    """
    Parses an EIP-2334 path like ``m/12381/3600/0/0/0`` into its child indices.
    """
    parts = path.replace(" ", "").split("/")
    if parts[0] != "m":
        raise ValueError(f"key path must start with 'm': {path!r}")
    try:
        return [int(part) for part in parts[1:]]
    except ValueError:
        raise ValueError(f"key path has a non-integer node: {path!r}") from None


@lru_cache(maxsize=64)
def _derive_nodes(seed: bytes, nodes: Tuple[int, ...]) -> int:
    # Validators of one seed share all but the last path nodes
    if not nodes:
        return derive_master_sk(seed)
    return derive_child_sk(_derive_nodes(seed, nodes[:-1]), nodes[-1])


def derive_secret_key(seed: bytes, path: str) -> int:
    return _derive_nodes(bytes(seed), tuple(path_to_nodes(path)))
