class GenesisError(Exception):
    """Base class for every fatal error raised while producing a genesis state."""


class InputError(GenesisError):
    """The user-supplied input cannot produce a genesis state."""


class ConfigError(InputError):
    pass


class MnemonicError(InputError):
    def __init__(self, source_index: int, reason: str = "mnemonic is not valid"):
        super().__init__(f"mnemonic {source_index} is bad: {reason}")
        self.source_index = source_index


class DerivationError(InputError):
    def __init__(self, source_index: int, validator_index: int, cause: Exception):
        super().__init__(
            f"failed to derive validator {validator_index} of mnemonic {source_index}: {cause}"
        )
        self.source_index = source_index
        self.validator_index = validator_index


class ValidatorListError(InputError):
    def __init__(self, line_numbers, reason: str):
        if isinstance(line_numbers, int):
            line_numbers = (line_numbers,)
        self.line_numbers = tuple(line_numbers)
        lines = " and ".join(str(n) for n in self.line_numbers)
        super().__init__(f"{reason} on line {lines}")


class DuplicatePubkeyError(InputError):
    def __init__(self, pubkey: bytes, first: str, second: str):
        super().__init__(f"duplicate pubkey 0x{pubkey.hex()}: {first} and {second}")
        self.pubkey = pubkey


class ExecutionBlockError(InputError):
    pass


class AssemblyError(GenesisError):
    pass


class InvariantViolation(GenesisError):
    """An internal invariant did not hold. This is a bug, not an input problem."""

    def __init__(self, message: str):
        super().__init__(f"internal invariant violated: {message}")
