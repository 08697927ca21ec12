# auditor_node/settings.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional
import os

import yaml
from pydantic import BaseModel, Field

# -------------------------
# Pydantic models (typed)
# -------------------------


class PersistenceConf(BaseModel):
    enabled: bool = True
    filename: str = "auditor_state.json"
    keep_backups: int = 2


class LoggingConf(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class ServerConf(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class NodeConf(BaseModel):
    # account that custodies stake and runs the election
    program_account: str = "auditor.bos"
    data_dir: str = "data"
    # extra holders of the "mid" capability (firecand / fireauditor)
    mid_authority: List[str] = Field(default_factory=list)


class TokenIssue(BaseModel):
    to: str
    quantity: str


class TokenConf(BaseModel):
    # genesis: currencies to create (max supply strings, e.g. "1000000.0000 BOS")
    create: List[str] = Field(default_factory=list)
    issue: List[TokenIssue] = Field(default_factory=list)


class Settings(BaseModel):
    persistence: PersistenceConf = PersistenceConf()
    logging: LoggingConf = LoggingConf()
    server: ServerConf = ServerConf()
    node: NodeConf = NodeConf()
    token: TokenConf = TokenConf()
    # ContractConfig seed; validated when the executor boots
    contract: Optional[Dict[str, Any]] = None

    def data_dir(self) -> Path:
        p = Path(self.node.data_dir)
        if not p.is_absolute():
            p = Path(os.getcwd()) / p
        return p


# -------------------------
# YAML load + env overlay
# -------------------------


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _truthy(v: str) -> bool:
    return v.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(cfg: dict) -> dict:
    def set_in(keys: List[str], value: Any):
        d = cfg
        for k in keys[:-1]:
            d = d.setdefault(k, {})
        d[keys[-1]] = value

    if os.getenv("AUDITOR_HOST"):
        set_in(["server", "host"], os.getenv("AUDITOR_HOST"))
    if os.getenv("AUDITOR_PORT"):
        set_in(["server", "port"], int(os.getenv("AUDITOR_PORT")))
    if os.getenv("AUDITOR_CORS_ORIGINS"):
        set_in(
            ["server", "cors_origins"],
            [x.strip() for x in os.getenv("AUDITOR_CORS_ORIGINS").split(",") if x.strip()],
        )

    if os.getenv("AUDITOR_LOG_LEVEL"):
        set_in(["logging", "level"], os.getenv("AUDITOR_LOG_LEVEL").upper())

    if os.getenv("AUDITOR_DATA_DIR"):
        set_in(["node", "data_dir"], os.getenv("AUDITOR_DATA_DIR"))
    if os.getenv("AUDITOR_PROGRAM_ACCOUNT"):
        set_in(["node", "program_account"], os.getenv("AUDITOR_PROGRAM_ACCOUNT"))

    if os.getenv("AUDITOR_PERSIST"):
        set_in(["persistence", "enabled"], _truthy(os.getenv("AUDITOR_PERSIST")))

    return cfg


def load_settings(path: Optional[str] = None) -> Settings:
    yaml_path = Path(path or os.getenv("AUDITOR_CONFIG") or "auditor_config.yaml")
    cfg = _load_yaml(yaml_path)
    cfg = _apply_env_overrides(cfg)
    return Settings(**cfg)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
