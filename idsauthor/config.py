"""Global configuration: schema constants and environment settings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# IDS 1.0 namespaces
IDS_NAMESPACE = "http://standards.buildingsmart.org/IDS"
XS_NAMESPACE = "http://www.w3.org/2001/XMLSchema"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
IDS_SCHEMA_LOCATION = (
    "http://standards.buildingsmart.org/IDS "
    "http://standards.buildingsmart.org/IDS/1.0/ids.xsd"
)

NSMAP = {
    "ids": IDS_NAMESPACE,
    "xs": XS_NAMESPACE,
    "xsi": XSI_NAMESPACE,
}

# Supported IFC schemas
SUPPORTED_IFC_VERSIONS = ("IFC2X3", "IFC4", "IFC4X3_ADD2")
DEFAULT_IFC_VERSION = "IFC4"

# Relationships allowed on a partOf facet
IFC_RELATIONS = (
    "IFCRELAGGREGATES",
    "IFCRELASSIGNSTOGROUP",
    "IFCRELCONTAINEDINSPATIALSTRUCTURE",
    "IFCRELNESTS",
    "IFCRELVOIDSELEMENT",
    "IFCRELFILLSELEMENT",
)
DEFAULT_RELATION = "IFCRELAGGREGATES"

OPTIONALITIES = ("required", "optional", "prohibited")

# Placeholders used when a document or section carries no title
DEFAULT_IDS_TITLE = "Untitled IDS"
DEFAULT_IDS_VERSION = "0.1.0"
DEFAULT_SECTION_TITLE = "Default Section"
NEW_SECTION_TITLE = "New Section"
NEW_SPECIFICATION_NAME = "New Specification"

# Upper bound offered by the editor for string length ranges
MAX_STRING_LENGTH = 255

# bSDD
IFC43_DICTIONARY_URI = "https://identifier.buildingsmart.org/uri/buildingsmart/ifc/4.3"
MIN_SEARCH_TERM_LENGTH = 2

# All known configuration keys with defaults
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "IDSAUTHOR_BASE_PATH": {"default": "", "description": "Base path the editor is served under"},
    "IDSAUTHOR_LOG_LEVEL": {"default": "INFO", "description": "Logging level"},
    "IDSAUTHOR_IFC_CATALOG": {"default": "", "description": "IFC class catalogue JSON file"},
    "BSDD_TRANSPORT": {"default": "rest", "description": "bSDD transport: 'rest' or 'graphql'"},
    "BSDD_API_URL": {"default": "https://api.bsdd.buildingsmart.org", "description": "bSDD REST API"},
    "BSDD_GQL_URL": {"default": "https://test.bsdd.buildingsmart.org/graphql/", "description": "bSDD GraphQL endpoint"},
    "BSDD_GQL_TOKEN": {"default": "", "description": "bSDD GraphQL bearer token (secret)"},
    "BSDD_LANG": {"default": "EN", "description": "bSDD language code"},
    "BSDD_TIMEOUT": {"default": "10", "description": "bSDD request timeout in seconds"},
}


def load_config(project_path: str | Path | None = None) -> dict[str, str]:
    """Load merged config: defaults -> config.json -> .env -> env vars.

    Parameters
    ----------
    project_path:
        Optional directory holding ``.idsauthor/config.json`` and ``.env``.

    Returns a flat dict of configuration values.
    """
    config: dict[str, str] = {key: str(info["default"]) for key, info in _CONFIG_KEYS.items()}

    if project_path is not None:
        root = Path(project_path)

        config_json = root / ".idsauthor" / "config.json"
        if config_json.is_file():
            try:
                data = json.loads(config_json.read_text(encoding="utf-8"))
                for k, v in data.items():
                    config[k] = str(v)
            except (json.JSONDecodeError, OSError):
                logger.debug("Could not read config.json", exc_info=True)

        env_file = root / ".env"
        if env_file.is_file():
            try:
                for line in env_file.read_text(encoding="utf-8").splitlines():
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" in line:
                        k, v = line.split("=", 1)
                        config[k.strip()] = v.strip()
            except OSError:
                logger.debug("Could not read .env", exc_info=True)

    # Environment variables override all
    for key in _CONFIG_KEYS:
        env_val = os.environ.get(key)
        if env_val is not None:
            config[key] = env_val

    config["BSDD_TRANSPORT"] = config["BSDD_TRANSPORT"].strip().lower() or "rest"
    return config


def configure_logging(level: str | int | None = None) -> None:
    """Set the level of the ``idsauthor`` logger hierarchy.

    Falls back to ``IDSAUTHOR_LOG_LEVEL`` when *level* is not given.
    """
    if level is None:
        level = load_config()["IDSAUTHOR_LOG_LEVEL"]
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.getLogger("idsauthor").setLevel(level)
