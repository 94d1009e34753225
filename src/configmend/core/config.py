"""
Configmend CONFIGURATION MANAGER
--------------------------------
Handles loading of user configuration (.configmend/config.yaml or
.configmend.yaml). Allows customization of:
- Ignore patterns (glob-based)
- Default schema for required-field checks
- Whether the external suggester is consulted by default
"""

import copy
import logging
from fnmatch import fnmatch
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger("configmend.config")


class ConfigManager:
    """
    Manages user configuration state.
    defaults:
      rules: {ignore: [...], schema: null}
      suggestions: {use_ai: false}
    """

    DEFAULT_CONFIG = {
        "rules": {
            "ignore": [
                ".git/*",
                "node_modules/*",
                "venv/*",
                "__pycache__/*"
            ],
            "schema": None,
        },
        "suggestions": {
            "use_ai": False,
        },
    }

    def __init__(self, workspace_root: Path):
        self.workspace = Path(workspace_root)
        self.config: Dict[str, Any] = copy.deepcopy(self.DEFAULT_CONFIG)
        self.source: Optional[Path] = None
        self._load_config()

    def _load_config(self) -> None:
        """
        Loads the first existing file of:
        1. .configmend/config.yaml (preferred)
        2. .configmend.yaml (root file)
        """
        yaml = YAML(typ="safe")
        possible_files = [
            self.workspace / ".configmend" / "config.yaml",
            self.workspace / ".configmend.yaml",
        ]

        for path in possible_files:
            if not path.exists():
                continue
            try:
                loaded = yaml.load(path)
            except (YAMLError, OSError) as e:
                logger.warning(f"Failed to parse {path.name}: {e}")
                return

            if isinstance(loaded, dict):
                self._merge_config(loaded)
            elif loaded is not None:
                logger.warning(f"Ignoring {path.name}: top level must be a mapping")
                return
            self.source = path
            logger.info(f"Loaded configuration from {path.name}")
            return

    def _merge_config(self, user_config: Dict[str, Any]) -> None:
        """Section-level merge of user config into defaults."""
        for section in ("rules", "suggestions"):
            value = user_config.get(section)
            if isinstance(value, dict):
                self.config[section].update(value)

    def is_ignored(self, file_path: str) -> bool:
        """True when the relative path matches any ignore glob."""
        return any(fnmatch(file_path, pattern) for pattern in self.config["rules"].get("ignore") or [])

    @property
    def schema(self) -> Optional[str]:
        return self.config["rules"].get("schema")

    @property
    def use_ai(self) -> bool:
        return bool(self.config["suggestions"].get("use_ai", False))
