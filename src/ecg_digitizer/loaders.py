"""Configuration file loaders for JSON and TOML formats."""

import json
import tomllib
from pathlib import Path

from .models import DigitizerConfig


class ConfigLoader:
    """Load a ``DigitizerConfig`` from a configuration file.

    Examples:
        config = ConfigLoader.from_json("digitizer.json")
        config = ConfigLoader.from_toml("digitizer.toml")
        config = ConfigLoader.from_file("digitizer.toml")

    A TOML file may hold the options at top level or under a
    ``[digitizer]`` table::

        [digitizer]
        layout = "6x2"
        rhythm_leads = ["II"]
        cabrera = false
    """

    @staticmethod
    def from_json(path: str | Path) -> DigitizerConfig:
        """Load the config from a JSON file.

        Raises:
            FileNotFoundError: If file does not exist
            json.JSONDecodeError: If file is not valid JSON
            pydantic.ValidationError: If config doesn't match schema
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return DigitizerConfig(**data.get("digitizer", data))

    @staticmethod
    def from_toml(path: str | Path) -> DigitizerConfig:
        """Load the config from a TOML file.

        Raises:
            FileNotFoundError: If file does not exist
            tomllib.TOMLDecodeError: If file is not valid TOML
            pydantic.ValidationError: If config doesn't match schema
        """
        path = Path(path)
        with path.open("rb") as f:
            data = tomllib.load(f)
        return DigitizerConfig(**data.get("digitizer", data))

    @staticmethod
    def from_file(path: str | Path) -> DigitizerConfig:
        """Load the config, choosing the format by file extension.

        Raises:
            ValueError: If file extension is not .json or .toml
        """
        path = Path(path)

        if path.suffix == ".json":
            return ConfigLoader.from_json(path)
        elif path.suffix == ".toml":
            return ConfigLoader.from_toml(path)
        else:
            raise ValueError(
                f"Unsupported config file format: {path.suffix}. "
                "Only .json and .toml are supported."
            )
