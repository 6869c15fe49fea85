import pytest

from eth2genesis.test import context
from eth2genesis.utils import bls as bls_utils


def pytest_addoption(parser):
    parser.addoption(
        "--preset",
        action="store",
        type=str,
        default="minimal",
        help="preset: run the tests with the specified preset (and the config of the same name)",
    )
    parser.addoption(
        "--bls-type",
        action="store",
        type=str,
        default="fastest",
        choices=list(bls_utils.BACKENDS),
        help="bls-type: use specified BLS implementation for key operations",
    )


@pytest.fixture(autouse=True)
def preset(request):
    context.DEFAULT_TEST_PRESET = request.config.getoption("--preset", default="minimal")


@pytest.fixture(autouse=True)
def bls_type(request):
    bls_type = request.config.getoption("--bls-type", default="fastest")
    if bls_type == "py_ecc":
        bls_utils.use_py_ecc()
    elif bls_type == "milagro":
        bls_utils.use_milagro()
    elif bls_type == "arkworks":
        bls_utils.use_arkworks()
    elif bls_type == "fastest":
        bls_utils.use_fastest()
    else:
        raise Exception(f"unsupported bls type: {bls_type}")


@pytest.fixture
def spec(fork, preset):
    return context.get_spec(fork)


@pytest.fixture
def quiet_console():
    return context.quiet_console()
