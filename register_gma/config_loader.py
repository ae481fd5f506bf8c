"""
Configuration file loading and saving for YAML and JSON formats.

Functions
---------
load_config : Load configuration, choosing the format from the file suffix
load_config_from_yaml : Load configuration from YAML file
load_config_from_json : Load configuration from JSON file
save_config_to_yaml : Save configuration to YAML file
save_config_to_json : Save configuration to JSON file
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .config import (
    AnalysisConfig,
    DataConfig,
    OutputConfig,
    SubspaceConfig,
    TransformConfig,
)

logger = logging.getLogger(__name__)


def _optional_path(value):
    return Path(value) if value is not None else None


def _parse_data_config(data_dict: dict[str, Any]) -> DataConfig:
    for key in ("features_path", "metadata_path"):
        if key not in data_dict:
            raise ValueError(f"Data section must specify '{key}'")

    kwargs = dict(data_dict)
    kwargs["features_path"] = Path(kwargs["features_path"])
    kwargs["metadata_path"] = Path(kwargs["metadata_path"])
    kwargs["taxonomy_path"] = _optional_path(kwargs.get("taxonomy_path"))
    if "count_columns" in kwargs:
        kwargs["count_columns"] = tuple(kwargs["count_columns"])

    unknown = set(kwargs) - set(DataConfig._fields)
    if unknown:
        raise ValueError(f"Unknown data options: {sorted(unknown)}")
    return DataConfig(**kwargs)


def _parse_section(section_cls, section_dict, name):
    section_dict = dict(section_dict or {})
    unknown = set(section_dict) - set(section_cls._fields)
    if unknown:
        raise ValueError(f"Unknown {name} options: {sorted(unknown)}")
    return section_cls(**section_dict)


def _config_from_dict(config_dict: dict[str, Any]) -> AnalysisConfig:
    if "data" not in config_dict:
        raise ValueError("Configuration must contain 'data' key")

    data = _parse_data_config(config_dict["data"])
    transform = _parse_section(TransformConfig, config_dict.get("transform"), "transform")

    subspace = _parse_section(SubspaceConfig, config_dict.get("subspace"), "subspace")
    if subspace.rotate_pair is not None:
        subspace = subspace._replace(rotate_pair=tuple(subspace.rotate_pair))

    output = _parse_section(OutputConfig, config_dict.get("output"), "output")
    output = output._replace(output_dir=Path(output.output_dir))

    return AnalysisConfig(data=data, transform=transform, subspace=subspace, output=output)


def _config_to_dict(config: AnalysisConfig) -> dict[str, Any]:
    """
    Convert AnalysisConfig to a plain dictionary.

    Parameters
    ----------
    config : AnalysisConfig
        Configuration to convert.

    Returns
    -------
    dict
        Dictionary with only YAML/JSON-safe values.
    """
    data = config.data._asdict()
    data["features_path"] = str(config.data.features_path)
    data["metadata_path"] = str(config.data.metadata_path)
    data["taxonomy_path"] = (
        str(config.data.taxonomy_path) if config.data.taxonomy_path else None
    )
    data["count_columns"] = list(config.data.count_columns)

    subspace = config.subspace._asdict()
    if config.subspace.rotate_pair is not None:
        subspace["rotate_pair"] = list(config.subspace.rotate_pair)
    if config.subspace.lda_levels is not None:
        subspace["lda_levels"] = dict(config.subspace.lda_levels)

    output = config.output._asdict()
    output["output_dir"] = str(config.output.output_dir)

    return {
        "data": data,
        "transform": config.transform._asdict(),
        "subspace": subspace,
        "output": output,
    }


def load_config_from_yaml(path: Path) -> AnalysisConfig:
    """
    Load configuration from YAML file.

    Parameters
    ----------
    path : Path
        Path to YAML configuration file.

    Returns
    -------
    AnalysisConfig
        Loaded configuration.

    Raises
    ------
    FileNotFoundError
        If configuration file does not exist.
    ValueError
        If configuration file is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info(f"Loading configuration from {path}")

    with open(path, "r") as f:
        config_dict = yaml.safe_load(f)

    if config_dict is None:
        raise ValueError(f"Configuration file is empty: {path}")

    return _config_from_dict(config_dict)


def load_config_from_json(path: Path) -> AnalysisConfig:
    """
    Load configuration from JSON file.

    Raises
    ------
    FileNotFoundError
        If configuration file does not exist.
    ValueError
        If configuration file is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info(f"Loading configuration from {path}")

    with open(path, "r") as f:
        config_dict = json.load(f)

    return _config_from_dict(config_dict)


def load_config(path: Path) -> AnalysisConfig:
    """Load a YAML or JSON configuration depending on the file suffix."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return load_config_from_json(path)
    return load_config_from_yaml(path)


def save_config_to_yaml(config: AnalysisConfig, path: Path) -> None:
    """
    Save configuration to YAML file.

    Parameters
    ----------
    config : AnalysisConfig
        Configuration to save.
    path : Path
        Path to output YAML file.
    """
    logger.info(f"Saving configuration to {path}")

    with open(path, "w") as f:
        yaml.safe_dump(_config_to_dict(config), f, default_flow_style=False, sort_keys=False)


def save_config_to_json(config: AnalysisConfig, path: Path) -> None:
    """Save configuration to JSON file."""
    logger.info(f"Saving configuration to {path}")

    with open(path, "w") as f:
        json.dump(_config_to_dict(config), f, indent=2)
