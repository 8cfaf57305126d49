"""
Centralized application settings.

The configuration is shared across the CLI, the API, and the ingestion
service. Values come from ``REPOKB_*`` environment variables and an optional
TOML file whose grouped sections are flattened onto :class:`AppSettings`.
"""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_EXTENSIONS: List[str] = [
    ".txt",
    ".md",
    ".pdf",
    ".doc",
    ".docx",
    ".java",
    ".py",
    ".js",
    ".ts",
    ".go",
    ".html",
    ".xml",
    ".json",
    ".yml",
    ".yaml",
]
DEFAULT_PRUNED_DIRS: List[str] = [".git", "node_modules", "target", ".idea", "build"]
DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024


class AppSettings(BaseSettings):
    """Project-wide settings loaded from env or .env files."""

    model_config = SettingsConfigDict(
        env_prefix="REPOKB_",
        env_nested_delimiter="__",
        extra="allow",
    )

    workspace_root: Path = Path("./clone-repo")
    registry_path: Optional[Path] = None
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    allowed_extensions: List[str] = DEFAULT_ALLOWED_EXTENSIONS
    pruned_dirs: List[str] = DEFAULT_PRUNED_DIRS
    chunk_size: int = 800
    chunk_overlap: int = 0
    milvus_uri: str = "http://localhost:19530"
    milvus_username: Optional[str] = None
    milvus_password: Optional[str] = None
    milvus_collection: str = "repokb_chunks"
    milvus_upsert_batch_size: int = 128
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-large"
    embedding_dimension: int = 3072
    embedding_api_base: Optional[str] = None
    embedding_api_key: Optional[str] = None
    embedding_batch_size: int = 64
    api_key: Optional[str] = None
    telemetry_enabled: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    def resolved_registry_path(self) -> Path:
        """Registry file location; defaults to a file beside the workspace root."""
        if self.registry_path is not None:
            return self.registry_path
        return self.workspace_root.parent / "repokb_tags.json"


_CONFIG_ENV_VAR = "REPOKB_CONFIG_PATH"
_DEFAULT_CONFIG_FILE = Path("repokb_settings.toml")


def _load_toml_config() -> Dict[str, Any]:
    """Load configuration from the primary TOML file on disk."""
    candidates: List[Path] = []
    config_override = os.getenv(_CONFIG_ENV_VAR)
    if config_override:
        candidates.append(Path(config_override))
    candidates.append(_DEFAULT_CONFIG_FILE)

    for candidate in candidates:
        if candidate.is_file():
            with candidate.open("rb") as handle:
                return tomllib.load(handle)
    return {}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _flatten_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Translate grouped TOML sections into AppSettings keyword arguments."""
    data: Dict[str, Any] = {}

    workspace = raw.get("workspace", {})
    if "root" in workspace:
        data["workspace_root"] = workspace["root"]
    if "registry_path" in workspace:
        data["registry_path"] = _blank_to_none(workspace["registry_path"])

    ingestion = raw.get("ingestion", {})
    if ingestion:
        if "max_file_bytes" in ingestion:
            data["max_file_bytes"] = int(ingestion["max_file_bytes"])
        if "allowed_extensions" in ingestion:
            data["allowed_extensions"] = list(ingestion["allowed_extensions"])
        if "pruned_dirs" in ingestion:
            data["pruned_dirs"] = list(ingestion["pruned_dirs"])
        if "chunk_size" in ingestion:
            data["chunk_size"] = int(ingestion["chunk_size"])
        if "chunk_overlap" in ingestion:
            data["chunk_overlap"] = int(ingestion["chunk_overlap"])

    milvus = raw.get("milvus", {})
    if "uri" in milvus:
        data["milvus_uri"] = milvus["uri"]
    if "username" in milvus:
        data["milvus_username"] = _blank_to_none(milvus["username"])
    if "password" in milvus:
        data["milvus_password"] = _blank_to_none(milvus["password"])
    if "collection" in milvus:
        data["milvus_collection"] = milvus["collection"]
    if "upsert_batch_size" in milvus:
        data["milvus_upsert_batch_size"] = milvus["upsert_batch_size"]

    embedding = raw.get("embedding", {})
    if embedding:
        data["embedding_provider"] = embedding.get("provider", data.get("embedding_provider"))
        if "model" in embedding:
            data["embedding_model"] = embedding["model"]
        if "dimension" in embedding:
            data["embedding_dimension"] = embedding["dimension"]
        if "api_base" in embedding:
            data["embedding_api_base"] = _blank_to_none(embedding["api_base"])
        if "api_key" in embedding:
            data["embedding_api_key"] = _blank_to_none(embedding["api_key"])
        if "batch_size" in embedding:
            data["embedding_batch_size"] = embedding["batch_size"]

    api_section = raw.get("api", {})
    if api_section:
        if "host" in api_section:
            data["api_host"] = api_section["host"]
        if "port" in api_section:
            data["api_port"] = int(api_section["port"])

    general = raw.get("general", {})
    if "api_key" in general:
        data["api_key"] = _blank_to_none(general["api_key"])
    if "telemetry_enabled" in general:
        data["telemetry_enabled"] = bool(general["telemetry_enabled"])

    return {key: value for key, value in data.items() if value is not None}


def load_settings() -> AppSettings:
    raw = _load_toml_config()
    flattened = _flatten_config(raw)
    return AppSettings(**flattened)


settings = load_settings()
