# slot_engine/domain/machine/factories/machine_factory.py
import logging
import os
from typing import Any, Dict, Optional, Union

from slot_engine.infrastructure.config.loaders.yaml_loader import YamlConfigLoader
from slot_engine.infrastructure.config.validators.schema_validator import SchemaValidator
from slot_engine.infrastructure.rng.rng_provider import RNGProvider
from slot_engine.domain.session.entities.spin_session import SpinSession
from ..entities.machine_config import MachineConfig
from ..entities.slot_machine import SlotMachine

PACKAGE_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
MACHINE_SCHEMA_PATH = os.path.join(PACKAGE_ROOT, "infrastructure", "config", "schemas", "machine_schema.json")
MACHINE_CONFIG_DIR = os.path.join(PACKAGE_ROOT, "application", "config", "machines")
DEFAULT_MACHINE_PATH = os.path.join(MACHINE_CONFIG_DIR, "dynamite_dash_20.yaml")


class MachineFactory:
    """
    Factory for creating SlotMachine instances and sessions on them.
    """
    def __init__(self, rng_provider: Optional[RNGProvider] = None,
                 config_loader: Optional[YamlConfigLoader] = None):
        """
        Initialize the machine factory.

        Args:
            rng_provider: RNG provider for creating RNG strategies
            config_loader: Loader used for machine files
        """
        self.logger = logging.getLogger("domain.machine.factory")
        self.rng_provider = rng_provider or RNGProvider()
        self.config_loader = config_loader or YamlConfigLoader(SchemaValidator())

    def load_config(self, file_path: str) -> MachineConfig:
        """
        Load, schema-check and validate a machine file.

        Args:
            file_path: Path to machine YAML

        Returns:
            Validated MachineConfig

        Raises:
            ConfigError: On any loading or validation problem
        """
        self.logger.info(f"Loading machine configuration: {file_path}")
        raw = self.config_loader.load_file(file_path, schema_path=MACHINE_SCHEMA_PATH)
        if "machine_id" not in raw:
            raw = dict(raw, machine_id=os.path.splitext(os.path.basename(file_path))[0])
        return MachineConfig.from_dict(raw, source=file_path)

    def create_machine(self, config: Union[MachineConfig, Dict[str, Any]],
                       seed: Optional[int] = None,
                       rng_strategy_name: Optional[str] = None) -> SlotMachine:
        """
        Create a new slot machine instance with its own RNG.

        Args:
            config: Validated config, or a raw dict to validate
            seed: Seed override; falls back to the config's rng seed
            rng_strategy_name: Strategy override; falls back to the config's

        Returns:
            Initialized SlotMachine instance
        """
        if not isinstance(config, MachineConfig):
            config = MachineConfig.from_dict(config)

        strategy = rng_strategy_name or config.rng_strategy
        rng_seed = seed if seed is not None else config.rng_seed
        rng = self.rng_provider.get_rng(strategy, rng_seed)
        self.logger.debug(f"Creating machine {config.machine_id} with RNG {strategy}, seed: {rng_seed}")

        return SlotMachine(config, rng)

    def create_machine_from_file(self, file_path: str, seed: Optional[int] = None) -> SlotMachine:
        return self.create_machine(self.load_config(file_path), seed=seed)

    def create_session(self, config: Union[MachineConfig, Dict[str, Any]],
                       seed: Optional[int] = None,
                       session_id: Optional[str] = None) -> SpinSession:
        """
        Create a session on a freshly built machine.

        Args:
            config: Machine configuration
            seed: Optional RNG seed
            session_id: Optional session identifier

        Returns:
            New SpinSession with zeroed counters
        """
        return SpinSession(self.create_machine(config, seed=seed), session_id=session_id)
