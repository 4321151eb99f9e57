from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .command.adapter import DEFAULT_TIMEOUT_SECONDS
from .util.errors import ConfigError

# --------
# Defaults
# --------
DEFAULT_WORKERS = 1
DEFAULT_LOG_LEVEL = "WARNING"
ALLOWED_CONFIG_KEYS = {
    "regions",
    "timeout",
    "workers",
    "log_level",
    "json_logs",
    "log_file",
    "progress",
}
BOOL_CONFIG_KEYS = {"json_logs", "progress"}
INT_CONFIG_KEYS = {"workers"}
FLOAT_CONFIG_KEYS = {"timeout"}
PATH_CONFIG_KEYS = {"log_file"}
STR_CONFIG_KEYS = {"log_level"}


@dataclass(frozen=True)
class RunConfig:
    # Scope
    regions: Optional[List[str]] = None

    # Execution
    timeout: float = DEFAULT_TIMEOUT_SECONDS  # seconds per external command, 0 = no limit
    workers: int = DEFAULT_WORKERS  # parallel sub-scopes (regions/projects)

    # Output
    log_level: str = DEFAULT_LOG_LEVEL
    json_logs: bool = False
    log_file: Optional[Path] = None
    progress: Optional[bool] = None  # None = only when stderr is a terminal


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (yaml.YAMLError, ValueError) as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Top-level config must be an object")
    return data


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    return raw


def _env_bool(name: str) -> Optional[bool]:
    raw = _env_str(name)
    if raw is None:
        return None
    return raw.lower() in {"1", "true", "yes", "on"}


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Config field '{key}' must be a boolean")


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return int(value)
        except ValueError:
            pass
    raise ValueError(f"Config field '{key}' must be an integer")


def _coerce_float(key: str, value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            pass
    raise ValueError(f"Config field '{key}' must be a number")


def _split_regions(value: Any) -> List[str]:
    if isinstance(value, str):
        return [r.strip() for r in value.split(",") if r.strip()]
    if isinstance(value, list) and all(isinstance(r, str) for r in value):
        return [r.strip() for r in value if r.strip()]
    raise ValueError("Config field 'regions' must be a list of strings or comma-separated string")


def _normalize_config_file(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown config keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS or value is None:
            continue
        if key == "regions":
            normalized[key] = _split_regions(value)
        elif key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in INT_CONFIG_KEYS:
            normalized[key] = _coerce_int(key, value)
        elif key in FLOAT_CONFIG_KEYS:
            normalized[key] = _coerce_float(key, value)
        elif key in PATH_CONFIG_KEYS:
            if not isinstance(value, (str, Path)):
                raise ValueError(f"Config field '{key}' must be a string path")
            normalized[key] = value
        elif key in STR_CONFIG_KEYS:
            if not isinstance(value, str):
                raise ValueError(f"Config field '{key}' must be a string")
            normalized[key] = value
    return normalized


def _compact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop keys with None values so they don't override lower-precedence config.
    """
    return {k: v for k, v in data.items() if v is not None}


def _env_config() -> Dict[str, Any]:
    raw = _compact_dict(
        {
            "regions": _env_str("CLOUD_TREE_REGIONS"),
            "timeout": _env_str("CLOUD_TREE_TIMEOUT"),
            "workers": _env_str("CLOUD_TREE_WORKERS"),
            "log_level": _env_str("CLOUD_TREE_LOG_LEVEL"),
            "json_logs": _env_bool("CLOUD_TREE_JSON_LOGS"),
            "log_file": _env_str("CLOUD_TREE_LOG_FILE"),
            "progress": _env_bool("CLOUD_TREE_PROGRESS"),
        }
    )
    if "timeout" in raw:
        raw["timeout"] = _coerce_float("timeout", raw["timeout"])
    if "workers" in raw:
        raw["workers"] = _coerce_int("workers", raw["workers"])
    return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloud-tree",
        description="Print every resource in a cloud account as a tree",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
        p.add_argument(
            "--json-logs",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Emit logs as JSON on stderr",
        )
        p.add_argument("--log-level", default=None, help="Log level (WARNING, INFO, DEBUG, ...)")
        p.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
        p.add_argument(
            "--timeout",
            type=float,
            default=None,
            help=f"Seconds to wait for each vendor command, 0 for no limit (default {DEFAULT_TIMEOUT_SECONDS:g})",
        )
        p.add_argument(
            "--workers",
            type=int,
            default=None,
            help=f"Regions/projects collected in parallel (default {DEFAULT_WORKERS})",
        )
        p.add_argument(
            "--progress",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Show a progress bar on stderr (default: when stderr is a terminal)",
        )

    p_aws = subparsers.add_parser("aws", help="Inventory an AWS account using the aws CLI")
    add_common(p_aws)
    p_aws.add_argument(
        "regions_arg",
        nargs="?",
        default=None,
        metavar="REGIONS",
        help="Comma-separated list of regions, e.g. us-east-1,us-west-1",
    )
    p_aws.add_argument("--regions", default=None, help="Comma-separated list of regions")

    p_gcp = subparsers.add_parser("gcp", help="Inventory a GCP organisation using gcloud")
    add_common(p_gcp)
    return parser


def load_run_config(
    args: Optional[argparse.Namespace] = None,
    argv: Optional[List[str]] = None,
) -> Tuple[str, RunConfig]:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.

    Returns:
      (command, RunConfig) where command is the provider subcommand: aws|gcp
    """
    ns = args if args is not None else build_parser().parse_args(argv)
    command = ns.command

    base: Dict[str, Any] = {
        "regions": None,
        "timeout": DEFAULT_TIMEOUT_SECONDS,
        "workers": DEFAULT_WORKERS,
        "log_level": DEFAULT_LOG_LEVEL,
        "json_logs": False,
        "log_file": None,
        "progress": None,
    }

    file_cfg: Dict[str, Any] = {}
    if getattr(ns, "config", None):
        file_cfg = _normalize_config_file(_parse_config_file(Path(ns.config)))

    env_cfg = _env_config()

    cli_regions = getattr(ns, "regions", None) or getattr(ns, "regions_arg", None)
    cli_cfg: Dict[str, Any] = _compact_dict(
        {
            "regions": cli_regions,
            "timeout": getattr(ns, "timeout", None),
            "workers": getattr(ns, "workers", None),
            "log_level": getattr(ns, "log_level", None),
            "json_logs": getattr(ns, "json_logs", None),
            "log_file": getattr(ns, "log_file", None),
            "progress": getattr(ns, "progress", None),
        }
    )

    merged = {**base, **file_cfg, **env_cfg, **cli_cfg}

    regions_raw = merged.get("regions")
    regions = _split_regions(regions_raw) if regions_raw is not None else None

    timeout = float(merged["timeout"])
    if timeout < 0:
        raise ValueError("timeout must be zero or a positive number of seconds")
    workers = int(merged["workers"])
    if workers < 1:
        raise ValueError("workers must be at least 1")

    log_file = merged.get("log_file")
    cfg = RunConfig(
        regions=regions or None,
        timeout=timeout,
        workers=workers,
        log_level=str(merged.get("log_level") or DEFAULT_LOG_LEVEL).upper(),
        json_logs=bool(merged["json_logs"]),
        log_file=Path(log_file) if log_file else None,
        progress=merged.get("progress"),
    )
    return command, cfg


def dump_config(cfg: RunConfig) -> Dict[str, Any]:
    return {
        "regions": cfg.regions,
        "timeout": cfg.timeout,
        "workers": cfg.workers,
        "log_level": cfg.log_level,
        "json_logs": cfg.json_logs,
        "log_file": str(cfg.log_file) if cfg.log_file else None,
        "progress": cfg.progress,
    }
