"""
Configuration loader for the intake proxy and form controller
"""

import logging
import os
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent


class TenantSourceConfig(BaseModel):
    """Where tenant JSON files are read from"""

    source: Literal["filesystem", "http"] = "filesystem"
    directory: str = "tenants"
    # Empty base_url makes the http source fall back to the caller's origin
    base_url: str = ""
    fetch_timeout_seconds: float = Field(default=10.0, gt=0)

    def resolved_directory(self) -> Path:
        path = Path(self.directory)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path


class OriginConfig(BaseModel):
    strip_trailing_slash: bool = True


class UpstreamConfig(BaseModel):
    """Outbound call to the tenant's workflow endpoint"""

    timeout_seconds: float = Field(default=20.0, gt=0)
    forward_idempotency_header: bool = True


class ControllerConfig(BaseModel):
    """Settings handed to the form controller at initialization"""

    base_path: str = ""
    default_tenant: str = "default"
    allowed_tenants: List[str] = Field(default_factory=lambda: ["default"])
    default_lang: str = "en"
    phone_country_code: str = "+61"
    building_service_ids: List[str] = Field(default_factory=lambda: ["building", "prepurchase"])


class IntakeConfig(BaseModel):
    """Complete intake configuration"""

    tenants: TenantSourceConfig = Field(default_factory=TenantSourceConfig)
    origins: OriginConfig = Field(default_factory=OriginConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    controller: ControllerConfig = Field(default_factory=ControllerConfig)


def _apply_env_overrides(data: dict) -> dict:
    tenants = data.setdefault("tenants", {})
    if os.getenv("TENANT_SOURCE"):
        tenants["source"] = os.environ["TENANT_SOURCE"].strip().lower()
    if os.getenv("TENANTS_DIR"):
        tenants["directory"] = os.environ["TENANTS_DIR"]
    if os.getenv("TENANT_BASE_URL"):
        tenants["base_url"] = os.environ["TENANT_BASE_URL"]

    if os.getenv("UPSTREAM_TIMEOUT_SECONDS"):
        data.setdefault("upstream", {})["timeout_seconds"] = os.environ["UPSTREAM_TIMEOUT_SECONDS"]

    # BASE_PATH="/" means the app is served from the root
    if os.getenv("BASE_PATH") is not None:
        data.setdefault("controller", {})["base_path"] = os.environ["BASE_PATH"]
    return data


def load_intake_config(config_path: Optional[Path] = None) -> IntakeConfig:
    """
    Load and validate intake configuration from YAML file

    Args:
        config_path: Path to config file. Defaults to config/intake_config.yml

    Returns:
        Validated IntakeConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = PROJECT_ROOT / "config" / "intake_config.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    data = _apply_env_overrides(data)

    try:
        cfg = IntakeConfig(**data)
        logger.info("Successfully loaded intake config from %s", config_path)
        return cfg
    except ValidationError as e:
        logger.error("Intake config validation failed: %s", e)
        raise
