'''Global configuration system supporting JSON5 files and command-line overrides'''

import argparse
import logging
from pathlib import Path
from typing import Any

import json5

__all__ = ['Config', 'get_config', 'default_indent', 'init_config']

logger = logging.getLogger(__name__)


class Config:
    '''Global configuration singleton'''

    _instance = None
    _initialized = False

    # Default configuration values
    _defaults = {
        'indent_size': 4,
        'origin_x': 100,
        'origin_y': 100,
        'indent_offset': 100,
        'vertical_spacing': 120,
        'max_recovery_steps': 1000,
        'log_level': 'WARNING',
    }

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = self._defaults.copy()
            self._cli_overrides = {}
            self._initialized = True

    def load_file(self, filepath: str | Path) -> bool:
        '''Load configuration from JSON5 file'''
        filepath = Path(filepath)
        if not filepath.exists():
            return False

        try:
            with open(filepath, 'r', encoding = 'utf-8') as f:
                data = json5.loads(f.read())

        except (OSError, ValueError) as e:
            logger.warning('Failed to load config from %s: %s', filepath, e)
            return False

        if not isinstance(data, dict):
            logger.warning('Ignoring config %s: top level is not an object', filepath)
            return False

        self._config.update(data)
        return True

    def load_defaults(self):
        '''Load the packaged configuration file'''
        project_config = Path(__file__).parent.parent / 'config.json5'
        self.load_file(project_config)

    def parse_args(self, args: list[str] = None) -> list[str]:
        '''Parse command-line arguments and override config, returning the unknown ones'''
        parser = argparse.ArgumentParser(
            description = 'luaforge configuration',
            add_help = False
        )

        parser.add_argument(
            '--config',
            type = str,
            help = 'Path to config file'
        )

        parser.add_argument(
            '--indent-size',
            type = int,
            help = 'Spaces per indentation level in generated code'
        )

        parser.add_argument(
            '--log-level',
            type = str,
            choices = ['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            help = 'Logging verbosity'
        )

        # Parse known args, ignore unknown
        parsed, rest = parser.parse_known_args(args)

        # Load config file if specified
        if parsed.config:
            self.load_file(parsed.config)

        # Apply command-line overrides
        if parsed.indent_size is not None:
            self._cli_overrides['indent_size'] = parsed.indent_size

        if parsed.log_level:
            self._cli_overrides['log_level'] = parsed.log_level

        return rest

    def get(self, key: str, default: Any = None) -> Any:
        '''Get configuration value'''
        # CLI overrides have highest priority
        if key in self._cli_overrides:
            return self._cli_overrides[key]

        # Then config file values
        if key in self._config:
            return self._config[key]

        # Finally default value
        return default

    def set(self, key: str, value: Any):
        '''Set configuration value at runtime'''
        self._config[key] = value

    def reset(self):
        '''Drop runtime values and overrides, then reload the packaged file'''
        self._config = self._defaults.copy()
        self._cli_overrides = {}
        self.load_defaults()

    @property
    def indent_size(self) -> int:
        return int(self.get('indent_size'))

    @property
    def origin_x(self) -> float:
        return float(self.get('origin_x'))

    @property
    def origin_y(self) -> float:
        return float(self.get('origin_y'))

    @property
    def indent_offset(self) -> float:
        '''Horizontal offset added per nesting level'''
        return float(self.get('indent_offset'))

    @property
    def vertical_spacing(self) -> float:
        return float(self.get('vertical_spacing'))

    @property
    def max_recovery_steps(self) -> int:
        return int(self.get('max_recovery_steps'))

    @property
    def log_level(self) -> str:
        return str(self.get('log_level')).upper()


# Global config instance
_config = Config()


def get_config() -> Config:
    '''Get global config instance'''
    return _config


def default_indent() -> str:
    '''Get one indentation unit'''
    return ' ' * _config.indent_size


def init_config(args: list[str] = None) -> list[str]:
    '''Initialize configuration system'''
    _config.load_defaults()
    if args is not None:
        return _config.parse_args(args)

    return []


# Auto-load defaults on import
_config.load_defaults()
