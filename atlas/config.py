# Atlas: configuration
# Override defaults via atlas.yaml, ATLAS_CONFIG / ATLAS_DB env vars, or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .page import PAGE_BINDINGS, PageBindings

CONFIG_PATH = Path(__file__).parent.parent / "atlas.yaml"


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass
class AtlasConfig:
    """Runtime configuration for an Atlas context."""

    # Storage
    storage_backend: str = "sqlite"   # sqlite | memory
    db_path: str = "~/.local/share/atlas/atlas.db"
    sync_key: str = "atlas_sync"
    watch_storage: bool = True        # watchdog observer on the db file

    # Board behaviour
    drag_threshold_px: float = 5
    strict_resolution: bool = False   # ambiguous names resolve to nothing
    toast_limit: int = 20

    # Pages beyond the built-in ones (name -> bindings block)
    pages: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    # Logging & server
    log_level: str = "INFO"
    server_host: str = "127.0.0.1"
    server_port: int = 3000

    def resolve_paths(self):
        """Expand ~ and apply environment overrides."""
        env_db = os.environ.get("ATLAS_DB")
        if env_db:
            self.db_path = env_db
        self.db_path = str(Path(self.db_path).expanduser())

    def validate(self):
        if self.storage_backend not in ("sqlite", "memory"):
            raise ConfigError(f"Unknown storage_backend: {self.storage_backend}")
        if self.drag_threshold_px < 0:
            raise ConfigError("drag_threshold_px must not be negative")
        if self.toast_limit < 1:
            raise ConfigError("toast_limit must be at least 1")

    def bindings(self, page: str) -> PageBindings:
        """Role bindings for a page name; unknown pages get no board."""
        if page in self.pages:
            return PageBindings.from_dict({"name": page, **self.pages[page]})
        return PAGE_BINDINGS.get(page) or PageBindings.static(page)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "AtlasConfig":
        """Load config from YAML file, falling back to defaults."""
        path = path or os.environ.get("ATLAS_CONFIG")
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k) or k == "pages"})
            except (yaml.YAMLError, TypeError, AttributeError):
                cfg = cls()
        else:
            cfg = cls()
        cfg.resolve_paths()
        cfg.validate()
        return cfg
