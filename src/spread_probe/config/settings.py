import copy
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from spread_probe.model import Asset
from spread_probe.utils.error_handler import ConfigError

# The user can create a `.env` file in the project root.
# --- .env.example ---
# MIN_SPREAD_PCT=0.6
# TRADE_AMOUNT=100000000
# POLL_INTERVAL=10000
# RPC_URL="https://api.mainnet-beta.solana.com"
# --------------------

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / '.env')

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

DEFAULTS = {
    "network": {
        "rpc_url": "https://api.mainnet-beta.solana.com",
        "timeout_ms": 10000,
    },
    "quote_api": {
        "base_url": "https://quote-api.jup.ag/v6",
        "slippage_bps": 50,
        "timeout_ms": 10000,
        "user_agent": "Mozilla/5.0 (RWA-Bot/1.0)",
    },
    "probe": {
        "min_spread_pct": 0.6,
        "trade_amount": 100000000,  # 100 USDC
        "poll_interval_ms": 10000,
        "stats_every_checks": 10,
    },
    "stablecoin": {
        "symbol": "USDC",
        "mint": USDC_MINT,
        "decimals": 6,
    },
    "assets": [
        {
            "symbol": "OUSG",
            "mint": "i7u4r16TcsJTgq1kAG8opmVZyVnAKBwLKu6ZPMwzxNc",
            "decimals": 6,
            "name": "Ondo US Treasuries",
        },
        {
            "symbol": "USYC",
            "mint": "BxJGT2EQxJhFNpJZqKQjqGdqXXnRqECHPqLhNvLgqvQF",
            "decimals": 6,
            "name": "Hashnote USYC",
        },
    ],
    "logging": {
        "level": "INFO",
        "file_enabled": True,
        "directory": "logs",
    },
}

# Environment variable -> (section, key, type). Later names win.
ENV_OVERRIDES: List[Tuple[str, str, str, type]] = [
    ("HELIUS_RPC_URL", "network", "rpc_url", str),
    ("RPC_URL", "network", "rpc_url", str),
    ("QUOTE_API_URL", "quote_api", "base_url", str),
    ("MIN_SPREAD_PCT", "probe", "min_spread_pct", float),
    ("TRADE_AMOUNT_USDC", "probe", "trade_amount", int),
    ("TRADE_AMOUNT", "probe", "trade_amount", int),
    ("POLL_INTERVAL_MS", "probe", "poll_interval_ms", int),
    ("POLL_INTERVAL", "probe", "poll_interval_ms", int),
    ("LOG_LEVEL", "logging", "level", str),
]


def _merge(base: dict, override: dict) -> dict:
    """Recursively merges `override` into a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """
    Manages application configuration by loading built-in defaults, an
    optional YAML file and environment variables. Allows nested access to
    config values using dot notation.
    """
    def __init__(self, config_path: Optional[str] = None, env: Optional[dict] = None):
        explicit = config_path is not None or bool(os.getenv("SPREAD_PROBE_CONFIG"))
        config_file = Path(config_path or os.getenv("SPREAD_PROBE_CONFIG") or PROJECT_ROOT / 'config.yaml')

        data = DEFAULTS
        if config_file.exists():
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f) or {}
            if not isinstance(yaml_config, dict):
                raise ConfigError(f"Configuration file {config_file} must contain a mapping")
            data = _merge(DEFAULTS, yaml_config)
        elif explicit:
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        self.source = str(config_file) if config_file.exists() else None
        self._set_attributes(data)
        self._override_with_env_vars(os.environ if env is None else env)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        """Builds a Config from defaults plus `data`, ignoring files and env."""
        cfg = cls.__new__(cls)
        cfg.source = None
        cfg._set_attributes(_merge(DEFAULTS, data))
        return cfg

    def _set_attributes(self, data: dict):
        """
        Recursively sets attributes on the Config object.
        Nested dictionaries are converted to new Config instances.
        """
        for key, value in data.items():
            if isinstance(value, dict):
                setattr(self, key, self._make_nested_config(value))
            else:
                setattr(self, key, value)

    def _make_nested_config(self, data: dict):
        """Helper to create a nested Config object."""
        nested_config = Config.__new__(Config)
        nested_config._set_attributes(data)
        return nested_config

    def _override_with_env_vars(self, env):
        """Overrides file values with the environment-style keys."""
        for env_name, section, key, caster in ENV_OVERRIDES:
            raw = env.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                value = caster(raw)
            except ValueError as e:
                raise ConfigError(f"{env_name}={raw!r} is not a valid {caster.__name__}") from e
            setattr(getattr(self, section), key, value)

    def get(self, key, default=None):
        """Provides a .get() method, similar to a dictionary."""
        return getattr(self, key, default)

    def items(self):
        """Allows iterating over key-value pairs, like a dictionary."""
        return [(k, v) for k, v in vars(self).items() if k != 'source']


@dataclass(frozen=True)
class ProbeSettings:
    """Validated, typed view of the configuration used by the bot."""
    stablecoin: Asset
    assets: Tuple[Asset, ...]
    min_spread_pct: float = 0.6
    trade_amount: int = 100000000
    poll_interval_ms: int = 10000
    stats_every_checks: int = 10
    rpc_url: str = DEFAULTS["network"]["rpc_url"]
    rpc_timeout_ms: int = 10000
    quote_api_url: str = DEFAULTS["quote_api"]["base_url"]
    slippage_bps: int = 50
    quote_timeout_ms: int = 10000
    user_agent: str = DEFAULTS["quote_api"]["user_agent"]

    def __post_init__(self):
        if not math.isfinite(self.min_spread_pct) or self.min_spread_pct < 0:
            raise ConfigError(f"MIN_SPREAD_PCT must be a finite number >= 0, got {self.min_spread_pct}")
        if self.trade_amount <= 0:
            raise ConfigError(f"TRADE_AMOUNT must be a positive integer, got {self.trade_amount}")
        if self.poll_interval_ms <= 0:
            raise ConfigError(f"POLL_INTERVAL must be a positive integer, got {self.poll_interval_ms}")
        if self.stats_every_checks <= 0:
            raise ConfigError(f"stats_every_checks must be positive, got {self.stats_every_checks}")
        if not self.assets:
            raise ConfigError("At least one asset must be configured")

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_config(cls, cfg: Config) -> 'ProbeSettings':
        probe = cfg.probe
        network = cfg.network
        quote_api = cfg.quote_api
        try:
            stablecoin = _asset_from(cfg.stablecoin)
            assets = tuple(_asset_from(a) for a in cfg.assets)
            return cls(
                stablecoin=stablecoin,
                assets=assets,
                min_spread_pct=float(probe.min_spread_pct),
                trade_amount=_whole_number("trade_amount", probe.trade_amount),
                poll_interval_ms=_whole_number("poll_interval_ms", probe.poll_interval_ms),
                stats_every_checks=_whole_number("stats_every_checks", probe.get('stats_every_checks', 10)),
                rpc_url=str(network.rpc_url),
                rpc_timeout_ms=_whole_number("network.timeout_ms", network.get('timeout_ms', 10000)),
                quote_api_url=str(quote_api.base_url).rstrip('/'),
                slippage_bps=_whole_number("slippage_bps", quote_api.get('slippage_bps', 50)),
                quote_timeout_ms=_whole_number("quote_api.timeout_ms", quote_api.get('timeout_ms', 10000)),
                user_agent=str(quote_api.get('user_agent', DEFAULTS["quote_api"]["user_agent"])),
            )
        except ConfigError:
            raise
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def _whole_number(name: str, value) -> int:
    """Integer settings must be whole; 100.7 is an error, never truncated."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigError(f"{name} must be an integer, got {value!r}")
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value)
    raise ConfigError(f"{name} must be an integer, got {value!r}")


def _asset_from(entry) -> Asset:
    """Accepts a mapping or a nested Config section."""
    data = dict(entry.items()) if isinstance(entry, Config) else dict(entry)
    return Asset(
        symbol=str(data['symbol']),
        mint=str(data['mint']),
        decimals=int(data['decimals']),
        name=data.get('name'),
    )


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Returns the application-wide Config, building it on first use so an
    invalid environment surfaces where callers can handle ConfigError.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
