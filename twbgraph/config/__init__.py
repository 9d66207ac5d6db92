"""
Configuration for twbgraph
"""

from twbgraph.config.config import Config, DefaultConfig, get_config, reload_config

__all__ = ['Config', 'DefaultConfig', 'get_config', 'reload_config']
