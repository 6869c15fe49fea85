import pytest

from eth2genesis.exceptions import InputError, MnemonicError
from eth2genesis.keys.mnemonics import MnemonicSource, load_mnemonic_sources, seed_from_mnemonic

MNEMONIC = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"
# BIP-39 seed of MNEMONIC with an empty passphrase
SEED = bytes.fromhex(
    "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
    "9a5ac40b389cd370d086206dec8aa6c43daea6690f20ad3d8d48b2d2ce9e38e4"
)


def test_seed_from_mnemonic():
    assert seed_from_mnemonic(MNEMONIC) == SEED


def test_seed_ignores_whitespace():
    assert seed_from_mnemonic("  " + MNEMONIC.replace(" ", "\n  ") + "\n") == SEED


def test_bad_checksum():
    with pytest.raises(MnemonicError, match="mnemonic 3 is bad"):
        seed_from_mnemonic(" ".join(["abandon"] * 12), source_index=3)


def test_empty_mnemonic():
    with pytest.raises(MnemonicError):
        seed_from_mnemonic("   ")


def test_load_sources(tmp_path):
    path = tmp_path / "mnemonics.yaml"
    path.write_text(
        f'- mnemonic: "{MNEMONIC}"\n'
        "  count: 3\n"
        f'- mnemonic: "{MNEMONIC}"\n'
        "  count: 0\n"
    )
    assert load_mnemonic_sources(path) == [MnemonicSource(MNEMONIC, 3), MnemonicSource(MNEMONIC, 0)]


def test_load_empty_sources(tmp_path):
    path = tmp_path / "mnemonics.yaml"
    path.write_text("")
    assert load_mnemonic_sources(path) == []


def test_load_sources_not_a_list(tmp_path):
    path = tmp_path / "mnemonics.yaml"
    path.write_text(f'mnemonic: "{MNEMONIC}"\n')
    with pytest.raises(InputError):
        load_mnemonic_sources(path)


@pytest.mark.parametrize("count", ["-1", "ten", "1.5"])
def test_load_sources_bad_count(tmp_path, count):
    path = tmp_path / "mnemonics.yaml"
    path.write_text(f'- mnemonic: "{MNEMONIC}"\n  count: {count}\n')
    with pytest.raises(MnemonicError, match="mnemonic 0 is bad"):
        load_mnemonic_sources(path)


def test_load_sources_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_mnemonic_sources(tmp_path / "missing.yaml")


def test_load_sources_malformed_yaml(tmp_path):
    path = tmp_path / "mnemonics.yaml"
    path.write_text('- mnemonic: "abandon\n  count: [2\n')
    with pytest.raises(InputError, match="not valid YAML"):
        load_mnemonic_sources(path)
