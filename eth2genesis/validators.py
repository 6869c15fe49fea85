import os
from hashlib import sha256
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from pathos.multiprocessing import ProcessingPool as Pool
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from eth2genesis.exceptions import (
    DerivationError,
    DuplicatePubkeyError,
    InputError,
    ValidatorListError,
)
from eth2genesis.keys.derivation import (
    derive_child_sk,
    derive_secret_key,
    withdrawal_key_path,
)
from eth2genesis.keys.mnemonics import MnemonicSource, seed_from_mnemonic
from eth2genesis.utils import bls

# Upper bound of derivations submitted to the pool at once
MAX_IN_FLIGHT = 10_000

ZERO_ADDRESS = b"\x00" * 20


class ValidatorRecord(NamedTuple):
    pubkey: bytes
    withdrawal_credentials: bytes
    balance: int


def bls_withdrawal_credentials(withdrawal_pubkey: bytes) -> bytes:
    return b"\x00" + sha256(withdrawal_pubkey).digest()[1:]


def eth1_withdrawal_credentials(address: bytes) -> bytes:
    return b"\x01" + b"\x00" * 11 + address


def derive_validator(seed: bytes, index: int, withdrawal_address: Optional[bytes], balance: int) -> ValidatorRecord:
    """
    Derives validator ``index`` of a seed. Without a (non-zero) withdrawal address,
    the withdrawal credentials commit to a second BLS key at ``m/12381/3600/index/0``.
    """
    withdrawal_sk = derive_secret_key(seed, withdrawal_key_path(index))
    # validator_key_path(index) is the first child of the withdrawal key path
    signing_sk = derive_child_sk(withdrawal_sk, 0)
    pubkey = bls.SkToPk(signing_sk)
    if withdrawal_address is None or withdrawal_address == ZERO_ADDRESS:
        withdrawal_credentials = bls_withdrawal_credentials(bls.SkToPk(withdrawal_sk))
    else:
        withdrawal_credentials = eth1_withdrawal_credentials(withdrawal_address)
    return ValidatorRecord(pubkey=pubkey, withdrawal_credentials=withdrawal_credentials, balance=balance)


def _derive_in_worker(data):
    seed, index, withdrawal_address, balance, backend = data
    bls.init(backend)
    try:
        return index, derive_validator(seed, index, withdrawal_address, balance), None
    except Exception as e:
        return index, None, e


def _new_progress(console: Console) -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def derive_source(seed: bytes, source_index: int, count: int, withdrawal_address: Optional[bytes],
                  balance: int, workers: int = 1, max_in_flight: int = MAX_IN_FLIGHT,
                  console: Optional[Console] = None) -> List[ValidatorRecord]:
    """
    Derives ``count`` validators of one seed. The result is in index order,
    independent of the number of workers and of completion order.
    """
    if console is None:
        console = Console()
    if max_in_flight < 1:
        raise ValueError("max_in_flight must be positive")
    backend = bls.backend_name or bls.init()
    slots: List[Optional[ValidatorRecord]] = [None] * count

    with _new_progress(console) as progress:
        task = progress.add_task(f"mnemonic {source_index}", total=count)
        if workers <= 1 or count <= 1:
            for i in range(count):
                try:
                    slots[i] = derive_validator(seed, i, withdrawal_address, balance)
                except Exception as e:
                    raise DerivationError(source_index, i, e) from e
                progress.advance(task)
        else:
            pool = Pool(processes=workers)
            try:
                for start in range(0, count, max_in_flight):
                    window = range(start, min(start + max_in_flight, count))
                    inputs = [(seed, i, withdrawal_address, balance, backend) for i in window]
                    for index, record, error in pool.uimap(_derive_in_worker, inputs):
                        if error is not None:
                            raise DerivationError(source_index, index, error)
                        slots[index] = record
                        progress.advance(task)
            except BaseException:
                # Cancel the outstanding work of this source
                pool.terminate()
                pool.join()
                pool.clear()
                raise
            else:
                pool.close()
                pool.join()
                pool.clear()

    if any(record is None for record in slots):
        raise DerivationError(source_index, slots.index(None), RuntimeError("no result"))
    return slots


def write_tranche(tranches_dir: Union[str, Path], source_index: int, records: Sequence[ValidatorRecord]) -> Path:
    """
    Writes the pubkeys of one key source, in index order, one 0x-prefixed hex pubkey per line.
    """
    path = Path(tranches_dir) / f"tranche_{source_index:04d}.txt"
    with open(path, "w") as f:
        for record in records:
            f.write("0x" + record.pubkey.hex() + "\n")
    return path


def derive_mnemonic_validators(spec, sources: Sequence[MnemonicSource], tranches_dir: Union[str, Path],
                               withdrawal_address: Optional[bytes] = None, workers: int = 1,
                               max_in_flight: int = MAX_IN_FLIGHT,
                               console: Optional[Console] = None) -> List[List[ValidatorRecord]]:
    """
    Derives the validators of each key source, sources one after the other.
    Returns the validators per source, and writes a tranche file per source.
    """
    if console is None:
        console = Console()
    derived = []
    for m, source in enumerate(sources):
        console.print(f"processing mnemonic {m}, for {source.count} validators")
        seed = seed_from_mnemonic(source.mnemonic, m)
        records = derive_source(
            seed, m, source.count, withdrawal_address, spec.MAX_EFFECTIVE_BALANCE,
            workers=workers, max_in_flight=max_in_flight, console=console,
        )
        console.print("writing pubkeys list file...")
        write_tranche(tranches_dir, m, records)
        derived.append(records)
    return derived


def _parse_hex(value: str) -> bytes:
    value = value.strip()
    if value.startswith("0x"):
        value = value[2:]
    return bytes.fromhex(value)


def parse_validator_line(spec, line: str, line_number: int) -> ValidatorRecord:
    parts = line.strip().split(":")
    if len(parts) < 2 or len(parts) > 3:
        raise ValidatorListError(line_number, "expected pubkey:withdrawal_credentials[:balance]")
    try:
        pubkey = _parse_hex(parts[0])
    except ValueError:
        raise ValidatorListError(line_number, "invalid pubkey (not hex)") from None
    if len(pubkey) != 48:
        raise ValidatorListError(line_number, "invalid pubkey (invalid length)")
    try:
        withdrawal_credentials = _parse_hex(parts[1])
    except ValueError:
        raise ValidatorListError(line_number, "invalid withdrawal credentials (not hex)") from None
    if len(withdrawal_credentials) != 32:
        raise ValidatorListError(line_number, "invalid withdrawal credentials (invalid length)")
    prefix = withdrawal_credentials[:1]
    if prefix == spec.BLS_WITHDRAWAL_PREFIX:
        pass
    elif prefix == spec.ETH1_ADDRESS_WITHDRAWAL_PREFIX:
        if withdrawal_credentials[1:12] != b"\x00" * 11:
            raise ValidatorListError(line_number, "invalid withdrawal credentials (invalid 0x01 cred)")
    else:
        raise ValidatorListError(line_number, "invalid withdrawal credentials (invalid type)")
    if len(parts) == 3:
        balance_str = parts[2].strip()
        # ascii digits only
        if not (balance_str.isascii() and balance_str.isdigit()):
            raise ValidatorListError(line_number, "invalid balance")
        balance = int(balance_str)
        if balance >= 2**64:
            raise ValidatorListError(line_number, "invalid balance (too large)")
    else:
        balance = spec.MAX_EFFECTIVE_BALANCE
    return ValidatorRecord(pubkey=pubkey, withdrawal_credentials=withdrawal_credentials, balance=balance)


def load_validators_from_file(spec, path: Union[str, Path]) -> List[Tuple[int, ValidatorRecord]]:
    """
    Loads validators from a text file of ``pubkey:withdrawal_credentials[:balance]`` lines.
    Blank lines and lines starting with ``#`` are skipped.
    Returns ``(line_number, record)`` pairs in file order, line numbers are 1-based.
    """
    validators = []
    seen: Dict[bytes, int] = {}
    with open(path, "r") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if line == "" or line.startswith("#"):
                continue
            record = parse_validator_line(spec, line, line_number)
            if record.pubkey in seen:
                raise ValidatorListError((seen[record.pubkey], line_number), "duplicate pubkey")
            seen[record.pubkey] = line_number
            validators.append((line_number, record))
    return validators


def merge_validators(derived: Sequence[Sequence[ValidatorRecord]],
                     listed: Sequence[Tuple[int, ValidatorRecord]] = ()) -> List[ValidatorRecord]:
    """
    Concatenates mnemonic validators (source order, then index order) and listed validators.
    Any pubkey that appears twice is an error naming both origins.
    """
    merged: List[ValidatorRecord] = []
    origins: Dict[bytes, str] = {}

    def add(record: ValidatorRecord, origin: str):
        if record.pubkey in origins:
            raise DuplicatePubkeyError(record.pubkey, origins[record.pubkey], origin)
        origins[record.pubkey] = origin
        merged.append(record)

    for m, records in enumerate(derived):
        for i, record in enumerate(records):
            add(record, f"mnemonic {m} validator {i}")
    for line_number, record in listed:
        add(record, f"validators list line {line_number}")
    return merged


def parse_withdrawal_address(value: Optional[str]) -> Optional[bytes]:
    if value is None or value == "":
        return None
    try:
        address = _parse_hex(value)
    except ValueError:
        raise InputError(f"withdrawal address is not hex: {value!r}") from None
    if len(address) != 20:
        raise InputError(f"withdrawal address must be 20 bytes, got {len(address)}")
    return address


def default_workers() -> int:
    return os.cpu_count() or 1

