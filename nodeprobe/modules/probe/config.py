"""Probe configuration management.

Configuration is resolved with the following precedence:
1. Explicitly passed parameters
2. Environment variables (NODEPROBE_PROBE_<FIELD>)
3. Configuration files
4. Default values
"""
import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("nodeprobe.probe.config")

ENV_PREFIX = "NODEPROBE_PROBE_"

# Default configuration paths
DEFAULT_CONFIG_PATHS = [
    Path("/etc/nodeprobe/probe.yaml"),
    Path("~/.config/nodeprobe/probe.yaml").expanduser(),
    Path("nodeprobe.yaml").absolute(),
]

class ProbeConfig(BaseModel):
    """Retry policy and transport settings for node probes."""
    model_config = ConfigDict(extra="ignore")

    max_attempts: int = Field(
        default=10,
        description="Maximum executor invocations per probe"
    )
    timeout_ms: int = Field(
        default=20000,
        description="Per-call execution timeout in milliseconds"
    )
    retry_delay: float = Field(
        default=1.0,
        description="Delay in seconds between the early attempts"
    )
    backoff_attempts: int = Field(
        default=2,
        description="Attempts that are followed by a delay; transport errors after these abort the probe"
    )
    connect_timeout: int = Field(
        default=10,
        description="SSH connection timeout per hop in seconds"
    )

    @field_validator('max_attempts', 'timeout_ms', 'connect_timeout')
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator('retry_delay', 'backoff_attempts')
    @classmethod
    def must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None, **overrides: Any) -> 'ProbeConfig':
        """Load configuration from file, environment variables and overrides."""
        config_data: Dict[str, Any] = {}

        if config_path:
            config_path = Path(config_path).expanduser().absolute()
            if config_path.exists():
                config_data = cls._load_config_file(config_path)
        else:
            for path in DEFAULT_CONFIG_PATHS:
                path = path.expanduser().absolute()
                if path.exists():
                    config_data = cls._load_config_file(path)
                    break

        config_data.update(cls._load_env())
        config_data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**config_data)

    @classmethod
    def _load_env(cls) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return values

    @classmethod
    def _load_config_file(cls, path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
            return data.get('probe', data)
        except Exception as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return {}

# Global configuration instance
_config: Optional[ProbeConfig] = None

def get_config(config_path: Optional[Union[str, Path]] = None) -> ProbeConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ProbeConfig.load(config_path)
    return _config

def set_config(config: Optional[ProbeConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
