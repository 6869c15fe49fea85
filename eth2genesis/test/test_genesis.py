import json

import pytest

from eth2genesis.exceptions import DuplicatePubkeyError, ExecutionBlockError
from eth2genesis.execution.genesis_config import parse_eth_genesis
from eth2genesis.forks import Fork
from eth2genesis.genesis import GenesisOptions, format_genesis_time, generate_genesis
from eth2genesis.test.context import quiet_console
from eth2genesis.test.helpers.execution import eth_genesis_json
from eth2genesis.test.keys.test_mnemonics import MNEMONIC
from eth2genesis.utils.ssz.ssz_impl import deserialize, hash_tree_root

# MIN_GENESIS_TIME of the minimal config
MINIMAL_MIN_GENESIS_TIME = 1578009600
EL_TIMESTAMP = 1_700_000_000


@pytest.fixture
def mnemonics_file(tmp_path):
    path = tmp_path / "mnemonics.yaml"
    path.write_text(f'- mnemonic: "{MNEMONIC}"\n  count: 2\n')
    return path


@pytest.fixture
def eth1_config_file(tmp_path):
    path = tmp_path / "genesis.json"
    path.write_text(json.dumps(eth_genesis_json(timestamp=EL_TIMESTAMP)))
    return path


def _options(tmp_path, fork, **kwargs):
    kwargs.setdefault("state_output", tmp_path / "genesis.ssz")
    kwargs.setdefault("tranches_dir", tmp_path / "tranches")
    return GenesisOptions(fork=fork, config="minimal", **kwargs)


def test_format_genesis_time():
    assert format_genesis_time(1578009600, 300) == "genesis at 1578009600 + 300 = 1578009900  (2020-01-03 00:05:00+00:00)"
    assert format_genesis_time(1700000000, 0) == "genesis at 1700000000 + 0 = 1700000000  (2023-11-14 22:13:20+00:00)"
    assert format_genesis_time(1700000000, 604800).startswith("genesis at 1700000000 + 604800 = 1700604800  (")


def test_phase0_genesis(tmp_path, mnemonics_file):
    console = quiet_console()
    result = generate_genesis(_options(tmp_path, Fork.PHASE0, mnemonics=mnemonics_file), console=console)
    output = console.file.getvalue()

    assert result.eth1_timestamp == MINIMAL_MIN_GENESIS_TIME
    assert result.genesis_time == MINIMAL_MIN_GENESIS_TIME + 300
    assert "genesis at 1578009600 + 300 = 1578009900" in output
    assert "not enough validators for genesis" in output
    assert len(result.validators) == 2
    assert (tmp_path / "tranches" / "tranche_0000.txt").exists()

    state = deserialize(result.spec.types.BeaconState, (tmp_path / "genesis.ssz").read_bytes())
    assert hash_tree_root(state) == hash_tree_root(result.state)
    assert state.eth1_data.block_hash == b"\x00" * 32


def test_electra_genesis_from_eth1_config(tmp_path, mnemonics_file, eth1_config_file):
    options = _options(
        tmp_path, Fork.ELECTRA,
        mnemonics=mnemonics_file,
        eth1_config=eth1_config_file,
        eth1_match_genesis_time=True,
        eth1_withdrawal_address=b"\x44" * 20,
    )
    result = generate_genesis(options, console=quiet_console())
    block_hash = parse_eth_genesis(eth_genesis_json(timestamp=EL_TIMESTAMP)).to_block().hash

    state = result.state
    assert result.genesis_time == EL_TIMESTAMP + 300
    assert state.eth1_data.block_hash == block_hash
    assert state.latest_execution_payload_header.block_hash == block_hash
    assert state.latest_execution_payload_header.timestamp == EL_TIMESTAMP
    assert all(validator.withdrawal_credentials[:1] == b"\x01" for validator in state.validators)


def test_bellatrix_without_execution_layer(tmp_path):
    options = _options(tmp_path, Fork.BELLATRIX, eth1_block=b"\x66" * 32)
    result = generate_genesis(options, console=quiet_console())
    assert result.state.eth1_data.block_hash == b"\x66" * 32
    assert result.state.latest_execution_payload_header.block_hash == b"\x66" * 32
    assert len(result.validators) == 0


def test_capella_needs_execution_block(tmp_path):
    with pytest.raises(ExecutionBlockError):
        generate_genesis(_options(tmp_path, Fork.CAPELLA), console=quiet_console())
    assert not (tmp_path / "genesis.ssz").exists()


def test_additional_validators(tmp_path, mnemonics_file):
    validators_file = tmp_path / "validators.txt"
    validators_file.write_text(f"{'ab' * 48}:{'00' + '11' * 31}:40000000000\n")
    options = _options(tmp_path, Fork.PHASE0, mnemonics=mnemonics_file, additional_validators=validators_file,
                       state_output=None)
    result = generate_genesis(options, console=quiet_console())
    assert len(result.validators) == 3
    assert result.validators[-1].pubkey == b"\xab" * 48
    assert result.state.balances[2] == 40_000_000_000
    assert not (tmp_path / "genesis.ssz").exists()


def test_duplicate_between_mnemonic_and_list(tmp_path, mnemonics_file):
    first = generate_genesis(
        _options(tmp_path, Fork.PHASE0, mnemonics=mnemonics_file, state_output=None), console=quiet_console(),
    )
    validators_file = tmp_path / "validators.txt"
    validators_file.write_text(f"0x{first.validators[1].pubkey.hex()}:0x{'00' * 32}\n")
    options = _options(tmp_path, Fork.PHASE0, mnemonics=mnemonics_file, additional_validators=validators_file)
    with pytest.raises(DuplicatePubkeyError, match="mnemonic 0 validator 1 and validators list line 1"):
        generate_genesis(options, console=quiet_console())
