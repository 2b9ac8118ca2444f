import json
import os
from pathlib import Path
from typing import Any

from polygon_paths.core.constants.chains import (
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_POLYGON,
    ETHERSCAN_V2_API_URL,
)
from polygon_paths.core.constants.polygon_contracts import POLYGON_BY_ROOT_CHAIN

_CONFIG_ENV_KEYS = ("POLYGON_PATHS_CONFIG_PATH", "POLYGON_PATHS_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_RPC_ENV_KEYS = {"root": "ETHEREUM_RPC_URL", "child": "POLYGON_RPC_URL"}


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError:
        return {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def _polygon_section() -> dict[str, Any]:
    section = CONFIG.get("polygon", {})
    return section if isinstance(section, dict) else {}


def get_root_chain_id() -> int:
    return int(_polygon_section().get("root_chain_id") or CHAIN_ID_ETHEREUM)


def get_child_chain_id() -> int:
    return int(_polygon_section().get("child_chain_id") or CHAIN_ID_POLYGON)


def get_rpc_urls() -> dict[str, str | None]:
    configured = _polygon_section().get("rpc_urls", {}) or {}
    urls: dict[str, str | None] = {}
    for network, env_key in _RPC_ENV_KEYS.items():
        value = configured.get(network) or os.environ.get(env_key)
        urls[network] = str(value).strip() if value else None
    return urls


def get_private_key() -> str | None:
    wallet = CONFIG.get("main_wallet", {})
    if isinstance(wallet, dict):
        pk = wallet.get("private_key_hex") or wallet.get("private_key")
        if pk:
            return str(pk).strip()
    return os.environ.get("PRIVATE_KEY")


def get_etherscan_api_key() -> str | None:
    system = CONFIG.get("system", {})
    api_key = system.get("etherscan_api_key") if isinstance(system, dict) else None
    if api_key:
        return str(api_key).strip()
    return os.environ.get("ETHERSCAN_API_KEY")


def get_gas_oracle_url() -> str:
    url = _polygon_section().get("gas_oracle_url")
    if url:
        return str(url).strip()
    return ETHERSCAN_V2_API_URL


def get_polygon_contracts(root_chain_id: int | None = None) -> dict[str, str]:
    chain_id = int(root_chain_id or get_root_chain_id())
    contracts = dict(POLYGON_BY_ROOT_CHAIN.get(chain_id, {}))
    overrides = _polygon_section().get("contracts", {}) or {}
    contracts.update({k: str(v) for k, v in overrides.items() if v})
    return contracts
