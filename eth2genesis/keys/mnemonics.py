from pathlib import Path
from typing import List, NamedTuple, Union

from mnemonic import Mnemonic
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from eth2genesis.exceptions import InputError, MnemonicError

_english = Mnemonic("english")


class MnemonicSource(NamedTuple):
    mnemonic: str
    count: int


def normalize_mnemonic(mnemonic: str) -> str:
    return " ".join(mnemonic.split())


def seed_from_mnemonic(mnemonic: str, source_index: int = 0) -> bytes:
    """
    Returns the 64 byte BIP-39 seed of ``mnemonic``, with an empty passphrase.
    The mnemonic must pass the checksum of the english word list.
    """
    phrase = normalize_mnemonic(mnemonic)
    if not phrase:
        raise MnemonicError(source_index, "mnemonic is empty")
    if not _english.check(phrase):
        raise MnemonicError(source_index, "mnemonic is not valid")
    return Mnemonic.to_seed(phrase, passphrase="")


def load_mnemonic_sources(path: Union[str, Path]) -> List[MnemonicSource]:
    """
    Loads the YAML list of ``{mnemonic, count}`` key sources, in file order.
    """
    yaml = YAML(typ="safe")
    with open(path, "r") as f:
        try:
            data = yaml.load(f)
        except YAMLError as e:
            raise InputError(f"mnemonics file {path} is not valid YAML: {e}") from e
    if data is None:
        return []
    if not isinstance(data, list):
        raise InputError(f"mnemonics file {path} must contain a list of key sources")
    sources = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict) or "mnemonic" not in entry or "count" not in entry:
            raise MnemonicError(i, "key source needs a 'mnemonic' and a 'count'")
        count = entry["count"]
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise MnemonicError(i, f"count must be a non-negative integer, got {count!r}")
        sources.append(MnemonicSource(mnemonic=str(entry["mnemonic"]), count=count))
    return sources
