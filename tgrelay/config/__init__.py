"""Configuration model and loader."""

from tgrelay.config.loader import load_config
from tgrelay.config.schema import RelayConfig

__all__ = ["RelayConfig", "load_config"]
