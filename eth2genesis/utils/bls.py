import milagro_bls_binding as milagro_bls  # noqa: F401 for BLS switching option
import py_arkworks_bls12381 as arkworks_bls  # noqa: F401 for BLS switching option
from py_arkworks_bls12381 import (
    G1Point as arkworks_G1,
    Scalar as arkworks_Scalar,
)
from py_ecc.bls import G2ProofOfPossession as py_ecc_bls


class fastest_bls:
    _AggregatePKs = milagro_bls._AggregatePKs
    SkToPk = milagro_bls.SkToPk


BACKENDS = {
    "py_ecc": py_ecc_bls,
    "milagro": milagro_bls,
    "arkworks": arkworks_bls,
    "fastest": fastest_bls,
}

# Set by ``init``. Nothing is selected at import time.
bls = None
backend_name = None


def init(backend: str = "fastest") -> str:
    """
    Select the BLS implementation used for key operations.
    Safe to call more than once; repeated calls with the same backend are no-ops.
    """
    global bls, backend_name
    if backend not in BACKENDS:
        raise ValueError(f"unrecognized bls type: {backend}, expected one of {', '.join(BACKENDS)}")
    if backend_name != backend:
        bls = BACKENDS[backend]
        backend_name = backend
    return backend_name


def _active():
    if bls is None:
        raise RuntimeError("BLS backend is not initialized, call bls.init() first")
    return bls


def use_milagro():
    """
    Shortcut to use Milagro as BLS library
    """
    init("milagro")


def use_arkworks():
    """
    Shortcut to use Arkworks as BLS library
    """
    init("arkworks")


def use_py_ecc():
    """
    Shortcut to use Py-ecc as BLS library
    """
    init("py_ecc")


def use_fastest():
    """
    Shortcut to use the fastest implementation for key operations
    """
    init("fastest")


def SkToPk(SK: int) -> bytes:
    impl = _active()
    if impl == py_ecc_bls:
        return bytes(py_ecc_bls.SkToPk(SK))
    elif impl == arkworks_bls:
        return bytes((arkworks_G1() * arkworks_Scalar(SK)).to_compressed_bytes())
    else:
        return bytes(impl.SkToPk(SK.to_bytes(32, "big")))


def AggregatePKs(pubkeys) -> bytes:
    """
    Aggregates a sequence of public keys into a single public key.
    """
    impl = _active()
    pubkeys = [bytes(pubkey) for pubkey in pubkeys]
    if impl == py_ecc_bls or impl == arkworks_bls:  # no aggregation API in arkworks
        return bytes(py_ecc_bls._AggregatePKs(pubkeys))
    return bytes(impl._AggregatePKs(pubkeys))
