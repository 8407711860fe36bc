# === FILE: doc_scout/config.py ===
"""
Configuration loading and validation for DocScout.

Two schemas live here:

* :class:`ScoutConfig` – how pages are loaded and scanned (read from YAML or
  JSON, validated by Pydantic).
* :class:`SiteSettings` – the persisted, process-wide activation state
  (``mode`` / ``whitelist`` / ``deepMode``) as it is stored by
  :mod:`doc_scout.storage`.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Literal, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

Mode = Literal["all", "whitelist"]

MODE_ALL: Mode = "all"
MODE_WHITELIST: Mode = "whitelist"


class ScoutConfig(BaseModel):
    """Settings for loading one page and scanning it."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field(
        "Mozilla/5.0 (compatible; DocScout/0.1)", min_length=1, description="User-Agent header."
    )
    timeout: float = Field(15.0, gt=0, description="Per-request timeout (seconds).")
    retry_times: int = Field(2, ge=0, description="Retries for 5xx/429 on navigation.")
    throttle_interval: float = Field(
        0.8, ge=0, description="Minimum gap between two DOM sweeps (seconds)."
    )
    state_file: Path = Field(
        Path("~/.doc_scout/state.json"), description="Where the activation state is persisted."
    )
    download_dir: Path = Field(Path("downloads"), description="Target folder for downloads.")
    load_subresources: bool = Field(True, description="Fetch scripts, stylesheets and iframes.")
    max_subresources: int = Field(50, ge=0, description="Upper bound of sub-resource requests.")
    resource_timing: bool = Field(True, description="Expose the resource-timing log.")
    request_endpoints: List[str] = Field(
        default_factory=list,
        description="Extra URLs the page requests in the background after load.",
    )

    @field_validator("state_file", "download_dir", mode="after")
    def _expand_user(cls, v: Path) -> Path:
        return v.expanduser()


class SiteSettings(BaseModel):
    """Persisted activation state; field aliases are the storage keys."""
    model_config = ConfigDict(populate_by_name=True)

    mode: Mode = MODE_ALL
    whitelist: List[str] = Field(default_factory=list)
    deep_mode: bool = Field(False, alias="deepMode")

    @field_validator("whitelist", mode="before")
    def _drop_blank_hosts(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [h for h in v if isinstance(h, str) and h.strip()]
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Read YAML or JSON and return a validated :class:`ScoutConfig`.

    ``None`` falls back to ``configs/default.yaml`` and, when that file is
    absent too, to the built-in defaults. An explicit path that does not
    exist raises FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScoutConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return ScoutConfig(**data)
