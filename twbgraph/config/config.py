"""
Configuration module for twbgraph
Supports configuration through environment variables and a .env file
"""

import os
import threading
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

from twbgraph.core.models import DependencyMode, ValidationError


class DefaultConfig:
    """Default configuration values"""
    # Extraction
    DEPENDENCY_MODE = 'token-scan'
    WORKBOOK_EXTENSION = 'twb'
    LINEAGE_MAX_DEPTH = 10

    # Paths
    OUTPUT_DIR = './output'

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_DIR = './logs'
    AUTO_LOG_ENABLED = True


class Config:
    """
    twbgraph configuration (thread-safe singleton)

    Usage:
        config = Config.get_instance()
        # or
        config = get_config()

    Thread-safe: yes (threading.Lock with double-checked locking)
    """

    _instance: Optional['Config'] = None
    _lock: threading.Lock = threading.Lock()
    _initialized: bool = False

    def __new__(cls) -> 'Config':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Load settings once; later calls are no-ops"""
        if Config._initialized:
            return

        with Config._lock:
            if Config._initialized:
                return

            # .env first, then environment.env
            base_path = Path(__file__).parent.parent.parent
            env_path = base_path / '.env'
            if not env_path.exists():
                env_path = base_path / 'environment.env'

            if env_path.exists():
                load_dotenv(env_path)
                self._env_loaded = True
            else:
                self._env_loaded = False

            # Extraction
            self.dependency_mode_name = os.getenv('TWBGRAPH_DEPENDENCY_MODE', DefaultConfig.DEPENDENCY_MODE)
            self.workbook_extension = os.getenv('TWBGRAPH_WORKBOOK_EXTENSION', DefaultConfig.WORKBOOK_EXTENSION)
            self.lineage_max_depth = self._getenv_int('TWBGRAPH_LINEAGE_MAX_DEPTH', DefaultConfig.LINEAGE_MAX_DEPTH)

            # Paths
            self.output_dir = os.getenv('TWBGRAPH_OUTPUT_DIR', DefaultConfig.OUTPUT_DIR)

            # Logging
            self.log_level = os.getenv('TWBGRAPH_LOG_LEVEL', DefaultConfig.LOG_LEVEL)
            self.log_file = os.getenv('TWBGRAPH_LOG_FILE')
            self.log_dir = os.getenv('TWBGRAPH_LOG_DIR', DefaultConfig.LOG_DIR)
            self.auto_log_enabled = self._getenv_bool('TWBGRAPH_AUTO_LOG_ENABLED', DefaultConfig.AUTO_LOG_ENABLED)

            self._validate()

            Config._initialized = True

    @classmethod
    def get_instance(cls) -> 'Config':
        """
        Return the singleton configuration

        Example:
            >>> config = Config.get_instance()
            >>> config.dependency_mode
            <DependencyMode.TOKEN_SCAN: 'token-scan'>
        """
        return cls()

    @classmethod
    def reset_instance(cls) -> None:
        """
        Reset the singleton

        WARNING: meant for tests.
        """
        with cls._lock:
            cls._instance = None
            cls._initialized = False

    @property
    def dependency_mode(self) -> DependencyMode:
        return DependencyMode.from_string(self.dependency_mode_name)

    @staticmethod
    def _getenv_int(key: str, default: int) -> int:
        """Read an environment variable as int"""
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    @staticmethod
    def _getenv_bool(key: str, default: bool = False) -> bool:
        """Read an environment variable as bool"""
        value = os.getenv(key, '').lower()
        if not value:
            return default
        return value in ('true', '1', 'yes', 'on')

    def _validate(self) -> None:
        """Validate settings"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")

        if self.lineage_max_depth < 1:
            raise ValueError("Lineage max depth must be positive")

        try:
            DependencyMode.from_string(self.dependency_mode_name)
        except ValidationError as e:
            raise ValueError(str(e))

    def __repr__(self) -> str:
        return (f"Config(dependency_mode={self.dependency_mode_name}, "
                f"output_dir={self.output_dir}, env_loaded={self._env_loaded})")


def get_config() -> Config:
    """Return the singleton configuration"""
    return Config.get_instance()


def reload_config() -> Config:
    """
    Reload configuration from the environment

    WARNING: meant for tests or when settings must be re-read at runtime.
    """
    Config.reset_instance()
    return Config.get_instance()
