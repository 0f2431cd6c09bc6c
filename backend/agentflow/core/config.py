# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
AgentFlow configuration - single source of truth.
YAML holds the settings. Env vars only for deployment overrides.

Every limit the engine enforces (step ceiling, timeouts, truncation lengths)
lives here so it can be inspected with `cat` instead of read from code.
"""

import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List


DEFAULT_CONFIG_PATH = "configs/engine.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable engine configuration.
    All values from YAML. No hidden state.
    """

    # -- Service --
    service_host: str = "0.0.0.0"
    service_port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # -- Storage --
    storage_backend: str = "file"  # "file" or "memory"
    data_dir: str = "volumes/agentflow"

    # -- Engine limits --
    max_steps: int = 100
    webhook_timeout: float = 30.0
    wait_default_ms: int = 1000
    wait_max_ms: int = 60_000
    delay_default_seconds: float = 1.0
    delay_max_seconds: float = 300.0
    message_max_chars: int = 10_000
    email_to_max_chars: int = 255
    email_subject_max_chars: int = 500

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.
    """
    if not Path(path).exists():
        print(f"Config not found at {path}, using defaults")
        y = {}
    else:
        with open(path) as f:
            y = yaml.safe_load(f) or {}

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()

    return Config(
        # Service
        service_host=get(y, "service", "host") or defaults.service_host,
        service_port=get(y, "service", "port") or defaults.service_port,
        cors_origins=get(y, "service", "cors_origins") or ["*"],

        # Storage
        storage_backend=get(y, "storage", "backend") or defaults.storage_backend,
        data_dir=os.getenv("AGENTFLOW_DATA_DIR") or get(y, "storage", "data_dir") or defaults.data_dir,

        # Engine limits
        max_steps=get(y, "engine", "max_steps") or defaults.max_steps,
        webhook_timeout=get(y, "engine", "webhook", "timeout") or defaults.webhook_timeout,
        wait_default_ms=get(y, "engine", "wait", "default_ms") or defaults.wait_default_ms,
        wait_max_ms=get(y, "engine", "wait", "max_ms") or defaults.wait_max_ms,
        delay_default_seconds=get(y, "engine", "delay", "default_seconds") or defaults.delay_default_seconds,
        delay_max_seconds=get(y, "engine", "delay", "max_seconds") or defaults.delay_max_seconds,
        message_max_chars=get(y, "engine", "limits", "message_chars") or defaults.message_max_chars,
        email_to_max_chars=get(y, "engine", "limits", "email_to_chars") or defaults.email_to_max_chars,
        email_subject_max_chars=get(y, "engine", "limits", "email_subject_chars") or defaults.email_subject_max_chars,

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level") or defaults.log_level,
        log_format=get(y, "logging", "format") or defaults.log_format,
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("AGENTFLOW_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
