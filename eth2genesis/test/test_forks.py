import pytest

from eth2genesis.forks import ALL_FORKS, Fork


def test_fork_order():
    assert [fork.value for fork in ALL_FORKS] == ["phase0", "altair", "bellatrix", "capella", "deneb", "electra"]
    for fork in ALL_FORKS[1:]:
        assert ALL_FORKS.index(fork.previous) == ALL_FORKS.index(fork) - 1
    assert Fork.PHASE0.previous is None


def test_from_name():
    assert Fork.from_name("Electra") is Fork.ELECTRA
    assert Fork.from_name("merge") is Fork.BELLATRIX
    with pytest.raises(ValueError, match="unknown fork name"):
        Fork.from_name("fulu")


def test_capabilities_only_grow():
    for fork in ALL_FORKS[1:]:
        before = fork.previous.capabilities
        after = fork.capabilities
        for flag, enabled in before._asdict().items():
            if enabled:
                assert getattr(after, flag), f"{fork} lost {flag}"


def test_capability_flags():
    assert not any(Fork.PHASE0.capabilities)
    assert Fork.ALTAIR.capabilities.sync_committee
    assert not Fork.ALTAIR.capabilities.execution_payload
    assert Fork.CAPELLA.capabilities.withdrawals
    assert Fork.DENEB.capabilities.blob_gas
    assert Fork.ELECTRA.capabilities.execution_requests
    assert Fork.ELECTRA.capabilities.churn_accounting
    assert not Fork.DENEB.capabilities.churn_accounting


def test_version_keys():
    assert Fork.PHASE0.version_key == "GENESIS_FORK_VERSION"
    assert Fork.BELLATRIX.version_key == "BELLATRIX_FORK_VERSION"


def test_is_post():
    assert Fork.DENEB.is_post(Fork.CAPELLA)
    assert Fork.DENEB.is_post(Fork.DENEB)
    assert not Fork.ALTAIR.is_post(Fork.BELLATRIX)
