from typing import Any, Dict, Optional

from eth2genesis.config.config_util import load_named_config, load_named_preset
from eth2genesis.containers import ForkTypes, get_fork_types
from eth2genesis.exceptions import ConfigError
from eth2genesis.forks import ALL_FORKS, Fork

# Constants shared by all presets
GENESIS_SLOT = 0
GENESIS_EPOCH = 0
FAR_FUTURE_EPOCH = 2**64 - 1
DEPOSIT_CONTRACT_TREE_DEPTH = 2**5
JUSTIFICATION_BITS_LENGTH = 4
BLS_WITHDRAWAL_PREFIX = b"\x00"
ETH1_ADDRESS_WITHDRAWAL_PREFIX = b"\x01"
COMPOUNDING_WITHDRAWAL_PREFIX = b"\x02"
DOMAIN_SYNC_COMMITTEE = b"\x07\x00\x00\x00"
UNSET_DEPOSIT_REQUESTS_START_INDEX = 2**64 - 1

CONSTANTS = dict(
    GENESIS_SLOT=GENESIS_SLOT,
    GENESIS_EPOCH=GENESIS_EPOCH,
    FAR_FUTURE_EPOCH=FAR_FUTURE_EPOCH,
    DEPOSIT_CONTRACT_TREE_DEPTH=DEPOSIT_CONTRACT_TREE_DEPTH,
    JUSTIFICATION_BITS_LENGTH=JUSTIFICATION_BITS_LENGTH,
    BLS_WITHDRAWAL_PREFIX=BLS_WITHDRAWAL_PREFIX,
    ETH1_ADDRESS_WITHDRAWAL_PREFIX=ETH1_ADDRESS_WITHDRAWAL_PREFIX,
    COMPOUNDING_WITHDRAWAL_PREFIX=COMPOUNDING_WITHDRAWAL_PREFIX,
    DOMAIN_SYNC_COMMITTEE=DOMAIN_SYNC_COMMITTEE,
    UNSET_DEPOSIT_REQUESTS_START_INDEX=UNSET_DEPOSIT_REQUESTS_START_INDEX,
)


class Configuration:
    """
    Read-only attribute access to the runtime config variables, e.g. ``spec.config.GENESIS_DELAY``.
    """

    def __init__(self, values: Dict[str, Any]):
        self._values = dict(values)

    def __getattr__(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"config has no variable {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)


class Spec:
    """
    The consensus parameters of one fork: preset variables and constants as attributes,
    runtime config under ``config``, and the SSZ types of the fork under ``types``.
    """

    def __init__(self, fork: Fork, config: Dict[str, Any], preset: Dict[str, int]):
        for key in ("GENESIS_DELAY", "MIN_GENESIS_TIME", "MIN_GENESIS_ACTIVE_VALIDATOR_COUNT"):
            if key not in config:
                raise ConfigError(f"config is missing {key}")
        for version_fork in (fork, fork.previous or fork):
            if version_fork.version_key not in config:
                raise ConfigError(f"config is missing {version_fork.version_key}")
            if len(config[version_fork.version_key]) != 4:
                raise ConfigError(f"{version_fork.version_key} must be 4 bytes")
        self.fork = fork
        self.config = Configuration(config)
        self.preset = dict(preset)
        self.preset_base = config.get("PRESET_BASE", "custom")
        self.types: ForkTypes = get_fork_types(self.preset, fork)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name in ("preset", "config"):
            raise AttributeError(name)
        if name in CONSTANTS:
            return CONSTANTS[name]
        try:
            return self.preset[name]
        except KeyError:
            raise AttributeError(f"{self.preset_base} preset has no variable {name}") from None

    def __repr__(self) -> str:
        return f"Spec({self.fork}, preset={self.preset_base})"

    @property
    def current_version(self) -> bytes:
        return self.config.get(self.fork.version_key)

    @property
    def previous_version(self) -> bytes:
        # phase0 has no previous fork, and uses the genesis version for both
        previous = self.fork.previous or self.fork
        return self.config.get(previous.version_key)

    def is_post(self, fork: Fork) -> bool:
        return self.fork.is_post(fork)

    def compute_activation_exit_epoch(self, epoch: int) -> int:
        """
        Return the epoch during which validator activations and exits initiated in ``epoch`` take effect.
        """
        return epoch + 1 + self.MAX_SEED_LOOKAHEAD


def load_spec(fork: Fork, config: str = "mainnet", preset: Optional[str] = None) -> Spec:
    """
    Loads a config (built-in name or file path) and the matching preset.
    The preset defaults to the ``PRESET_BASE`` of the config.
    """
    config_vars = load_named_config(config)
    if preset is None:
        preset = config_vars.get("PRESET_BASE")
        if preset is None:
            raise ConfigError("config has no PRESET_BASE, and no preset was given")
    preset_vars = load_named_preset(preset)
    required = PRESET_VARS_OF[fork]
    missing = [key for key in required if key not in preset_vars]
    if missing:
        raise ConfigError(f"preset {preset} is missing {', '.join(missing)} for {fork}")
    return Spec(fork, config_vars, preset_vars)


_PRESET_VARS = {
    Fork.PHASE0: (
        "MAX_COMMITTEES_PER_SLOT",
        "MAX_VALIDATORS_PER_COMMITTEE",
        "SHUFFLE_ROUND_COUNT",
        "EFFECTIVE_BALANCE_INCREMENT",
        "MAX_EFFECTIVE_BALANCE",
        "SLOTS_PER_EPOCH",
        "MIN_SEED_LOOKAHEAD",
        "MAX_SEED_LOOKAHEAD",
        "EPOCHS_PER_ETH1_VOTING_PERIOD",
        "SLOTS_PER_HISTORICAL_ROOT",
        "EPOCHS_PER_HISTORICAL_VECTOR",
        "EPOCHS_PER_SLASHINGS_VECTOR",
        "HISTORICAL_ROOTS_LIMIT",
        "VALIDATOR_REGISTRY_LIMIT",
        "MAX_PROPOSER_SLASHINGS",
        "MAX_ATTESTER_SLASHINGS",
        "MAX_ATTESTATIONS",
        "MAX_DEPOSITS",
        "MAX_VOLUNTARY_EXITS",
    ),
    Fork.ALTAIR: ("SYNC_COMMITTEE_SIZE", "EPOCHS_PER_SYNC_COMMITTEE_PERIOD"),
    Fork.BELLATRIX: (
        "MAX_BYTES_PER_TRANSACTION",
        "MAX_TRANSACTIONS_PER_PAYLOAD",
        "BYTES_PER_LOGS_BLOOM",
        "MAX_EXTRA_DATA_BYTES",
    ),
    Fork.CAPELLA: ("MAX_BLS_TO_EXECUTION_CHANGES", "MAX_WITHDRAWALS_PER_PAYLOAD"),
    Fork.DENEB: ("MAX_BLOB_COMMITMENTS_PER_BLOCK",),
    Fork.ELECTRA: (
        "MIN_ACTIVATION_BALANCE",
        "MAX_EFFECTIVE_BALANCE_ELECTRA",
        "PENDING_DEPOSITS_LIMIT",
        "PENDING_PARTIAL_WITHDRAWALS_LIMIT",
        "PENDING_CONSOLIDATIONS_LIMIT",
        "MAX_ATTESTER_SLASHINGS_ELECTRA",
        "MAX_ATTESTATIONS_ELECTRA",
        "MAX_DEPOSIT_REQUESTS_PER_PAYLOAD",
        "MAX_WITHDRAWAL_REQUESTS_PER_PAYLOAD",
        "MAX_CONSOLIDATION_REQUESTS_PER_PAYLOAD",
    ),
}

# Preset variables needed by each fork, including those of the forks before it
PRESET_VARS_OF = {
    fork: tuple(key for f in ALL_FORKS[: ALL_FORKS.index(fork) + 1] for key in _PRESET_VARS[f])
    for fork in ALL_FORKS
}
