from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, TextIO, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from eth2genesis.exceptions import ConfigError

CONFIGS_DIR = Path(__file__).parent / "configs"
PRESETS_DIR = Path(__file__).parent / "presets"

# Non-numeric config entries that are kept as plain strings
STRING_VARS = ("PRESET_BASE", "CONFIG_NAME")


def parse_config_value(key: str, value: Any) -> Any:
    if isinstance(value, dict):
        return {k: parse_config_value(k, v) for k, v in value.items()}
    if isinstance(value, list):
        # YAML parser renders lists of ints as list of str
        return [parse_config_value(key, item) for item in value]
    if isinstance(value, str) and value.startswith("0x"):
        return bytes.fromhex(value[2:])
    if key in STRING_VARS:
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"config var {key} has a non-integer value: {value!r}") from None


def parse_config_vars(conf: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parses a dict of basic str/int/list types into more detailed python types
    """
    return {k: parse_config_value(k, v) for k, v in conf.items()}


def load_preset(preset_files: Iterable[Union[Path, BinaryIO, TextIO]]) -> Dict[str, Any]:
    """
    Loads the a directory of preset files, merges the result into one preset.
    """
    preset: Dict[str, Any] = {}
    for fork_file in preset_files:
        yaml = YAML(typ="base")
        try:
            fork_preset: dict = yaml.load(fork_file)
        except YAMLError as e:
            raise ConfigError(f"preset file {fork_file} is not valid YAML: {e}") from e
        if fork_preset is None:  # for empty YAML files
            continue
        if not set(fork_preset.keys()).isdisjoint(preset.keys()):
            duplicates = set(fork_preset.keys()).intersection(set(preset.keys()))
            raise ConfigError(f"duplicate config var(s) in preset files: {', '.join(sorted(duplicates))}")
        preset.update(fork_preset)
    if not preset:
        raise ConfigError("preset is empty")
    return parse_config_vars(preset)


def load_preset_dir(preset_dir: Path) -> Dict[str, Any]:
    if not preset_dir.is_dir():
        raise ConfigError(f"preset directory {preset_dir} does not exist")
    return load_preset(sorted(preset_dir.glob("*.yaml")))


def load_named_preset(name_or_path: str) -> Dict[str, Any]:
    """
    Loads one of the built-in presets (``mainnet``, ``minimal``), or a directory of preset files.
    """
    builtin = PRESETS_DIR / name_or_path
    if builtin.is_dir():
        return load_preset_dir(builtin)
    return load_preset_dir(Path(name_or_path))


def load_config_file(config_path: Union[Path, BinaryIO, TextIO]) -> Dict[str, Any]:
    """
    Loads the given configuration file.
    """
    yaml = YAML(typ="base")
    try:
        config_data = yaml.load(config_path)
    except YAMLError as e:
        raise ConfigError(f"config file {config_path} is not valid YAML: {e}") from e
    if not isinstance(config_data, dict):
        raise ConfigError(f"config file {config_path} does not contain a mapping")
    return parse_config_vars(config_data)


def load_named_config(name_or_path: str) -> Dict[str, Any]:
    """
    Loads one of the built-in configs (``mainnet``, ``minimal``), or a config file.
    """
    builtin = CONFIGS_DIR / f"{name_or_path}.yaml"
    if builtin.is_file():
        return load_config_file(builtin)
    return load_config_file(Path(name_or_path))
