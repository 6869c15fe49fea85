import pytest

from eth2genesis.exceptions import DuplicatePubkeyError, InputError, ValidatorListError
from eth2genesis.forks import Fork
from eth2genesis.test.context import get_spec
from eth2genesis.validators import (
    ValidatorRecord,
    load_validators_from_file,
    merge_validators,
    parse_validator_line,
    parse_withdrawal_address,
)

PUBKEY_A = "a" * 96
PUBKEY_B = "b" * 96
BLS_CREDS = "00" + "11" * 31
ETH1_CREDS = "01" + "00" * 11 + "22" * 20
COMPOUNDING_CREDS = "02" + "00" * 11 + "22" * 20


@pytest.fixture
def phase0_spec():
    return get_spec(Fork.PHASE0)


def test_parse_line_default_balance(phase0_spec):
    record = parse_validator_line(phase0_spec, f"0x{PUBKEY_A}:0x{BLS_CREDS}", 1)
    assert record == ValidatorRecord(bytes.fromhex(PUBKEY_A), bytes.fromhex(BLS_CREDS), phase0_spec.MAX_EFFECTIVE_BALANCE)


def test_parse_line_with_balance(phase0_spec):
    record = parse_validator_line(phase0_spec, f"{PUBKEY_A}:{ETH1_CREDS}:17000000000", 1)
    assert record.balance == 17_000_000_000
    assert record.withdrawal_credentials == bytes.fromhex(ETH1_CREDS)


@pytest.mark.parametrize("line,reason", [
    (f"{PUBKEY_A}", "expected pubkey"),
    (f"{PUBKEY_A}:{BLS_CREDS}:1:2", "expected pubkey"),
    (f"zz{PUBKEY_A[2:]}:{BLS_CREDS}", "invalid pubkey"),
    (f"{PUBKEY_A[2:]}:{BLS_CREDS}", "invalid pubkey"),
    (f"{PUBKEY_A}:{BLS_CREDS[2:]}", "invalid withdrawal credentials"),
    (f"{PUBKEY_A}:03{BLS_CREDS[2:]}", "invalid withdrawal credentials"),
    (f"{PUBKEY_A}:01{'33' * 31}", "invalid withdrawal credentials"),
    (f"{PUBKEY_A}:{BLS_CREDS}:-5", "invalid balance"),
    (f"{PUBKEY_A}:{BLS_CREDS}:32\u00b2", "invalid balance"),
    (f"{PUBKEY_A}:{BLS_CREDS}:\u0663\u0662", "invalid balance"),
    (f"{PUBKEY_A}:{BLS_CREDS}:{2**64}", "invalid balance"),
])
def test_parse_line_errors(phase0_spec, line, reason):
    with pytest.raises(ValidatorListError, match=reason) as exc_info:
        parse_validator_line(phase0_spec, line, 12)
    assert exc_info.value.line_numbers == (12,)
    assert "on line 12" in str(exc_info.value)


def test_compounding_credentials_are_rejected():
    line = f"{PUBKEY_A}:{COMPOUNDING_CREDS}:64000000000"
    for fork in (Fork.PHASE0, Fork.DENEB, Fork.ELECTRA):
        with pytest.raises(ValidatorListError, match="invalid type"):
            parse_validator_line(get_spec(fork), line, 1)


def test_load_file(tmp_path, phase0_spec):
    path = tmp_path / "validators.txt"
    path.write_text(
        "# genesis validators\n"
        f"0x{PUBKEY_A}:0x{BLS_CREDS}\n"
        "\n"
        f"{PUBKEY_B}:{ETH1_CREDS}:32000000000\n"
    )
    listed = load_validators_from_file(phase0_spec, path)
    assert [line_number for line_number, _ in listed] == [2, 4]
    assert [record.pubkey for _, record in listed] == [bytes.fromhex(PUBKEY_A), bytes.fromhex(PUBKEY_B)]


def test_load_file_error_line_number(tmp_path, phase0_spec):
    path = tmp_path / "validators.txt"
    path.write_text(f"# comment\n{PUBKEY_A}:{BLS_CREDS}\n{PUBKEY_B}:nothex\n")
    with pytest.raises(ValidatorListError, match="on line 3"):
        load_validators_from_file(phase0_spec, path)


def test_load_file_duplicate(tmp_path, phase0_spec):
    path = tmp_path / "validators.txt"
    path.write_text(f"{PUBKEY_A}:{BLS_CREDS}\n{PUBKEY_B}:{BLS_CREDS}\n{PUBKEY_A}:{ETH1_CREDS}\n")
    with pytest.raises(ValidatorListError, match="duplicate pubkey on line 1 and 3") as exc_info:
        load_validators_from_file(phase0_spec, path)
    assert exc_info.value.line_numbers == (1, 3)


def _record(pubkey_hex: str) -> ValidatorRecord:
    return ValidatorRecord(bytes.fromhex(pubkey_hex), bytes.fromhex(BLS_CREDS), 32_000_000_000)


def test_merge_order():
    derived = [[_record("01" * 48), _record("02" * 48)], [_record("03" * 48)]]
    listed = [(1, _record("04" * 48))]
    merged = merge_validators(derived, listed)
    assert [record.pubkey[0] for record in merged] == [1, 2, 3, 4]


def test_merge_duplicate_across_sources():
    derived = [[_record("01" * 48)], [_record("02" * 48), _record("01" * 48)]]
    with pytest.raises(DuplicatePubkeyError, match="mnemonic 0 validator 0 and mnemonic 1 validator 1"):
        merge_validators(derived)


def test_merge_duplicate_with_list():
    derived = [[_record("01" * 48)]]
    with pytest.raises(DuplicatePubkeyError, match="mnemonic 0 validator 0 and validators list line 7"):
        merge_validators(derived, [(3, _record("02" * 48)), (7, _record("01" * 48))])


def test_merge_duplicate_cites_file_line(tmp_path, phase0_spec):
    derived = [[_record("01" * 48)]]
    path = tmp_path / "validators.txt"
    path.write_text(f"# extra validators\n{PUBKEY_B}:{BLS_CREDS}\n\n{'01' * 48}:{BLS_CREDS}\n")
    with pytest.raises(DuplicatePubkeyError, match="validators list line 4"):
        merge_validators(derived, load_validators_from_file(phase0_spec, path))


def test_parse_withdrawal_address():
    assert parse_withdrawal_address(None) is None
    assert parse_withdrawal_address("") is None
    assert parse_withdrawal_address("0x" + "ab" * 20) == b"\xab" * 20
    with pytest.raises(InputError):
        parse_withdrawal_address("0x1234")
    with pytest.raises(InputError):
        parse_withdrawal_address("0x" + "zz" * 20)
