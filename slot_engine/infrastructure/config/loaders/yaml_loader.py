# slot_engine/infrastructure/config/loaders/yaml_loader.py
import os
import yaml
import json
import logging
from typing import Dict, Any, List, Optional


class ConfigError(Exception):
    """表示配置加载或验证过程中的错误的基类。"""
    pass


class FileNotFoundConfigError(ConfigError):
    """表示配置文件不存在。"""
    def __init__(self, path, message=None):
        self.path = path
        self.message = message or f"Configuration file not found: {path}"
        super().__init__(self.message)


class YamlParseError(ConfigError):
    """表示YAML解析错误。"""
    def __init__(self, file_path, yaml_error):
        self.file_path = file_path
        self.yaml_error = yaml_error
        self.message = f"Error parsing YAML file {file_path}: {str(yaml_error)}"
        super().__init__(self.message)


class SchemaValidationError(ConfigError):
    """表示配置验证错误。"""
    def __init__(self, file_path, errors: List[str]):
        self.file_path = file_path
        self.errors = errors
        error_msg = "\n  - ".join([""] + errors)
        self.message = f"Configuration validation failed for {file_path}:{error_msg}"
        super().__init__(self.message)


class MachineConfigError(ConfigError):
    """表示老虎机配置语义错误（权重、赢线、符号表等）。"""
    def __init__(self, errors: List[str], source: Optional[str] = None):
        self.errors = errors
        self.source = source or "machine configuration"
        error_msg = "\n  - ".join([""] + errors)
        self.message = f"Invalid {self.source}:{error_msg}"
        super().__init__(self.message)


class YamlConfigLoader:
    """
    加载和验证YAML配置文件。

    配置文件缺失或无效时总是抛出异常，不回退到默认值。
    """
    def __init__(self, schema_validator=None):
        """
        初始化YAML配置加载器。

        Args:
            schema_validator: 可选的验证器，用于检查配置是否符合模式
        """
        self.logger = logging.getLogger("infrastructure.config.loader")
        self.schema_validator = schema_validator

    def load_file(self, file_path: str, schema_path: Optional[str] = None) -> Dict[str, Any]:
        """
        加载单个YAML配置文件并可选地验证它。

        Args:
            file_path: YAML文件的路径
            schema_path: 用于验证的JSON模式的可选路径

        Returns:
            解析后的配置字典

        Raises:
            FileNotFoundConfigError: 如果文件不存在
            YamlParseError: 如果YAML解析失败
            SchemaValidationError: 如果验证失败
        """
        if not os.path.isfile(file_path):
            self.logger.error(f"Configuration file not found: {file_path}")
            raise FileNotFoundConfigError(file_path)

        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            error = YamlParseError(file_path, e)
            self.logger.error(error.message)
            raise error from e

        self.logger.debug(f"Successfully loaded configuration from {file_path}")

        # 空文件
        if config is None:
            self.logger.warning(f"Empty configuration file: {file_path}")
            config = {}

        # 老虎机配置不允许带着错误继续运行，验证失败总是抛出异常
        if schema_path and self.schema_validator:
            schema = self._load_schema(schema_path)
            is_valid, errors = self.schema_validator.validate(config, schema)

            if not is_valid:
                error = SchemaValidationError(file_path, errors)
                self.logger.error(error.message)
                raise error

            self.logger.debug(f"Successfully validated configuration against schema: {schema_path}")

        return config

    def _load_schema(self, schema_path: str) -> Dict[str, Any]:
        """
        加载JSON模式文件。

        Args:
            schema_path: JSON模式文件的路径

        Returns:
            解析后的模式字典

        Raises:
            FileNotFoundConfigError: 如果模式文件不存在
            ConfigError: 如果模式解析失败
        """
        if not os.path.isfile(schema_path):
            error_msg = f"Schema file not found: {schema_path}"
            self.logger.error(error_msg)
            raise FileNotFoundConfigError(schema_path, error_msg)

        try:
            with open(schema_path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except json.JSONDecodeError as e:
            error_msg = f"Error parsing schema file {schema_path}: {str(e)}"
            self.logger.error(error_msg)
            raise ConfigError(error_msg) from e
