from enum import Enum
from typing import NamedTuple, Optional


class ForkCapabilities(NamedTuple):
    sync_committee: bool = False
    execution_payload: bool = False
    withdrawals: bool = False
    blob_gas: bool = False
    execution_requests: bool = False
    churn_accounting: bool = False


class Fork(Enum):
    PHASE0 = "phase0"
    ALTAIR = "altair"
    BELLATRIX = "bellatrix"
    CAPELLA = "capella"
    DENEB = "deneb"
    ELECTRA = "electra"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "Fork":
        name = name.lower()
        # Bellatrix was called "merge" before it got a star name
        if name == "merge":
            name = cls.BELLATRIX.value
        try:
            return cls(name)
        except ValueError:
            raise ValueError(
                f"unknown fork name: {name!r}, available forks: {', '.join(f.value for f in cls)}"
            ) from None

    @property
    def previous(self) -> Optional["Fork"]:
        return PREVIOUS_FORK_OF[self]

    @property
    def capabilities(self) -> ForkCapabilities:
        return FORK_CAPABILITIES[self]

    @property
    def version_key(self) -> str:
        """
        Name of the config variable holding the fork version of this fork.
        """
        if self is Fork.PHASE0:
            return "GENESIS_FORK_VERSION"
        return f"{self.value.upper()}_FORK_VERSION"

    def is_post(self, other: "Fork") -> bool:
        """
        Returns true if this fork is ``other`` or comes after it.
        """
        return ALL_FORKS.index(self) >= ALL_FORKS.index(other)


ALL_FORKS = tuple(Fork)

PREVIOUS_FORK_OF = {
    # post_fork: pre_fork
    Fork.PHASE0: None,
    Fork.ALTAIR: Fork.PHASE0,
    Fork.BELLATRIX: Fork.ALTAIR,
    Fork.CAPELLA: Fork.BELLATRIX,
    Fork.DENEB: Fork.CAPELLA,
    Fork.ELECTRA: Fork.DENEB,
}

FORK_CAPABILITIES = {
    Fork.PHASE0: ForkCapabilities(),
    Fork.ALTAIR: ForkCapabilities(sync_committee=True),
    Fork.BELLATRIX: ForkCapabilities(sync_committee=True, execution_payload=True),
    Fork.CAPELLA: ForkCapabilities(
        sync_committee=True,
        execution_payload=True,
        withdrawals=True,
    ),
    Fork.DENEB: ForkCapabilities(
        sync_committee=True,
        execution_payload=True,
        withdrawals=True,
        blob_gas=True,
    ),
    Fork.ELECTRA: ForkCapabilities(
        sync_committee=True,
        execution_payload=True,
        withdrawals=True,
        blob_gas=True,
        execution_requests=True,
        churn_accounting=True,
    ),
}

# The first fork with an execution payload may start before the execution layer transitioned
FIRST_EXECUTION_FORK = Fork.BELLATRIX
