"""ragdesk configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (RAGDESK_EMBEDDING_MODEL, RAGDESK_GENERATION_MODEL,
     RAGDESK_STORE_PATH)
  3. Per-project ragdesk.yaml  (current working directory)
  4. Global ~/.ragdesk/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ragdesk.errors import ValidationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".ragdesk"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "ragdesk.yaml"

# Key names that suggest a credential; forbidden in global config.
# Does NOT match legitimate keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["store", "embedding", "chunking", "crawl", "retrieval", "generation"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValidationError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class StoreCfg:
    """Chunk snapshot location (ragdesk.yaml: store:)."""

    path: str = "chunks.json"


@dataclass
class EmbeddingCfg:
    """Embedding provider configuration (ragdesk.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model format).
        batch_size: Texts embedded concurrently per sub-batch.
        batch_pause: Seconds to sleep between sub-batches (RPM pacing).
        timeout: Per-request timeout in seconds.
        num_retries: Retries on transient provider errors (exponential backoff).
    """

    model: str = "openai/text-embedding-3-small"
    batch_size: int = 50
    batch_pause: float = 0.05
    timeout: float = 30.0
    num_retries: int = 3


@dataclass
class ChunkingCfg:
    """Window size and overlap in characters (ragdesk.yaml: chunking:)."""

    chunk_size: int = 1500
    overlap: int = 300


@dataclass
class CrawlCfg:
    """Website crawl limits (ragdesk.yaml: crawl:)."""

    max_pages: int = 100
    timeout: float = 30.0
    allow_private_hosts: bool = False


@dataclass
class RetrievalCfg:
    """Retrieval configuration (ragdesk.yaml: retrieval:)."""

    top_k: int = 5


@dataclass
class GenerationCfg:
    """Answer generation configuration (ragdesk.yaml: generation:)."""

    model: str = "openai/gpt-4o-mini"
    timeout: float = 60.0
    num_retries: int = 3
    max_tokens: int = 1024


@dataclass
class RagdeskConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    store: StoreCfg = field(default_factory=StoreCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    crawl: CrawlCfg = field(default_factory=CrawlCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: RagdeskConfig) -> None:
    """Raise ConfigError for values the pipeline cannot run with."""
    ch = cfg.chunking
    if ch.chunk_size < 1:
        raise ConfigError(f"chunking.chunk_size must be >= 1, got {ch.chunk_size}")
    if not 0 <= ch.overlap < ch.chunk_size:
        raise ConfigError(
            f"chunking.overlap must be in [0, chunk_size), got {ch.overlap} "
            f"(chunk_size={ch.chunk_size})"
        )
    if cfg.embedding.batch_size < 1:
        raise ConfigError(
            f"embedding.batch_size must be >= 1, got {cfg.embedding.batch_size}"
        )
    if cfg.embedding.batch_pause < 0:
        raise ConfigError(
            f"embedding.batch_pause must be >= 0, got {cfg.embedding.batch_pause}"
        )
    if cfg.crawl.max_pages < 1:
        raise ConfigError(f"crawl.max_pages must be >= 1, got {cfg.crawl.max_pages}")
    if cfg.retrieval.top_k < 1:
        raise ConfigError(f"retrieval.top_k must be >= 1, got {cfg.retrieval.top_k}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RagdeskConfig:
    """Build a *RagdeskConfig* from a merged raw YAML dict."""
    cfg = RagdeskConfig()

    if "store" in data:
        s = data["store"] or {}
        cfg.store = StoreCfg(path=str(s.get("path", cfg.store.path)))

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            batch_size=int(e.get("batch_size", cfg.embedding.batch_size)),
            batch_pause=float(e.get("batch_pause", cfg.embedding.batch_pause)),
            timeout=float(e.get("timeout", cfg.embedding.timeout)),
            num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
            overlap=int(c.get("overlap", cfg.chunking.overlap)),
        )

    if "crawl" in data:
        cr = data["crawl"] or {}
        cfg.crawl = CrawlCfg(
            max_pages=int(cr.get("max_pages", cfg.crawl.max_pages)),
            timeout=float(cr.get("timeout", cfg.crawl.timeout)),
            allow_private_hosts=bool(
                cr.get("allow_private_hosts", cfg.crawl.allow_private_hosts)
            ),
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(top_k=int(r.get("top_k", cfg.retrieval.top_k)))

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            timeout=float(g.get("timeout", cfg.generation.timeout)),
            num_retries=int(g.get("num_retries", cfg.generation.num_retries)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
        )

    return cfg


def _apply_env_overrides(cfg: RagdeskConfig) -> RagdeskConfig:
    """Apply RAGDESK_* environment variable overrides (layer 2)."""
    if model := os.environ.get("RAGDESK_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("RAGDESK_GENERATION_MODEL"):
        cfg.generation.model = model
    if path := os.environ.get("RAGDESK_STORE_PATH"):
        cfg.store.path = path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RagdeskConfig:
    """Load and return a merged *RagdeskConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *ragdesk.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *RagdeskConfig* with env var overrides applied.

    Raises:
        ConfigError: If global config contains API-key-like fields, a file is
            not valid YAML, or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    try:
        cfg = _cfg_from_dict(merged)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return data
