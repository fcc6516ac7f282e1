"""
Configuration management for ChainSlots.
Supports config.json with environment variable overrides.
All paths are resolved relative to the project root.
"""

import json
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

# Project root directory (parent of 'chainslots' folder)
PROJECT_ROOT = Path(__file__).parent.parent


def get_env(key: str, default: str = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes", "on")


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


# ==================== Configuration Models ====================

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    name: str = "ChainSlots"


class WalletConfig(BaseModel):
    starting_balance: float = 1000.0
    network: str = "Ethereum Mainnet"


class SlotsConfig(BaseModel):
    fee_percent: float = 2.5  # Platform fee taken from gross winnings
    history_limit: int = 50
    reel_delays: List[float] = Field(default_factory=lambda: [1.0, 1.5, 2.0])
    settle_delay: float = 0.3

    def scaled(self, factor: float) -> "SlotsConfig":
        """Return a copy with every reveal delay multiplied by factor."""
        return self.model_copy(
            update={
                "reel_delays": [d * factor for d in self.reel_delays],
                "settle_delay": self.settle_delay * factor,
            }
        )


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"


class PathsConfig(BaseModel):
    """All paths are relative to PROJECT_ROOT."""
    config_file: str = "config.json"
    log_file: str = "data/app.log"

    def get_config_path(self) -> Path:
        return PROJECT_ROOT / self.config_file

    def get_log_path(self) -> Path:
        return PROJECT_ROOT / self.log_file


class AppConfig(BaseModel):
    """Main application configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    slots: SlotsConfig = Field(default_factory=SlotsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================

def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    if config_path is None:
        config_path = PathsConfig().get_config_path()

    data = {}

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

    # Apply environment variable overrides
    if get_env("SERVER_HOST"):
        data.setdefault("server", {})["host"] = get_env("SERVER_HOST")
    if get_env("SERVER_PORT"):
        data.setdefault("server", {})["port"] = get_env_int("SERVER_PORT", 8000)
    if get_env("DEBUG"):
        data.setdefault("server", {})["debug"] = get_env_bool("DEBUG")

    if get_env("STARTING_BALANCE"):
        data.setdefault("wallet", {})["starting_balance"] = get_env_float(
            "STARTING_BALANCE", 1000.0
        )
    if get_env("FEE_PERCENT"):
        data.setdefault("slots", {})["fee_percent"] = get_env_float("FEE_PERCENT", 2.5)

    if get_env("LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = get_env("LOG_LEVEL")
    if get_env("LOG_TO_FILE"):
        data.setdefault("logging", {})["log_to_file"] = get_env_bool("LOG_TO_FILE")
    if get_env("LOG_FORMATTER"):
        data.setdefault("logging", {})["formatter"] = get_env("LOG_FORMATTER")

    config = AppConfig(**data)

    # Speeds up (or disables, with 0) the reel reveal pacing
    if get_env("REVEAL_DELAY_SCALE"):
        scale = max(0.0, get_env_float("REVEAL_DELAY_SCALE", 1.0))
        config.slots = config.slots.scaled(scale)

    return config


# Global config instance
settings = load_config()
