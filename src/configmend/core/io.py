"""
Configmend FILE SYSTEM MANAGER
------------------------------
Handles all physical I/O operations for the engine:
- Atomic file writes (temp file + os.replace)
- Timestamped backups with per-file rotation
- Directory crawling with depth limiting, skipping hidden entries
"""

import logging
import os
import shutil
import time
from pathlib import Path
from typing import Generator, List, Tuple

logger = logging.getLogger("configmend.io")

STATE_DIR_NAME = ".configmend"
BACKUP_KEEP = 5


class FileSystemManager:
    """
    Abstraction layer for local file system operations.
    """

    def __init__(self, workspace_root: Path):
        self.workspace = Path(workspace_root).resolve()
        self.state_dir = self.workspace / STATE_DIR_NAME
        self.backup_dir = self.state_dir / "backups"

    def ensure_workspace(self) -> None:
        """Creates workspace, state and backup directories if missing."""
        if not self.workspace.exists():
            try:
                self.workspace.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created workspace: {self.workspace}")
            except OSError as e:
                raise RuntimeError(f"Workspace creation failed: {e}")

        self.backup_dir.mkdir(parents=True, exist_ok=True)

    def read_text(self, path: Path) -> str:
        """Reads text file with BOM handling."""
        return path.read_text(encoding="utf-8-sig")

    def atomic_write(self, target_path: Path, content: str) -> None:
        """
        Writes content next to the target, then swaps it in with os.replace.
        The target is never left half-written.
        """
        temp_file = target_path.with_suffix(target_path.suffix + ".configmend.tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise IOError(f"Atomic write failed: {e}")

    def create_backup(self, target_path: Path) -> Path:
        """
        Copies the file into the mirrored backup tree:
        <workspace>/.configmend/backups/path/to/file.<timestamp>.yaml
        """
        try:
            rel_path = target_path.resolve().relative_to(self.workspace)
        except ValueError:
            rel_path = Path(target_path.name)

        backup_dest_dir = self.backup_dir / rel_path.parent
        backup_dest_dir.mkdir(parents=True, exist_ok=True)

        timestamp = int(time.time())
        backup_path = backup_dest_dir / f"{target_path.stem}.{timestamp}{target_path.suffix}"

        counter = 1
        while backup_path.exists():
            backup_path = backup_dest_dir / f"{target_path.stem}.{timestamp}-{counter}{target_path.suffix}"
            counter += 1

        shutil.copy2(target_path, backup_path)
        self._rotate_backups(backup_dest_dir, target_path.stem, target_path.suffix)
        return backup_path

    def _rotate_backups(self, backup_dir: Path, stem: str, suffix: str, keep: int = BACKUP_KEEP) -> None:
        """Keeps only the newest `keep` backups of one file."""
        candidates = sorted(
            backup_dir.glob(f"{stem}.*{suffix}"),
            key=lambda p: (p.stat().st_mtime, p.name),
            reverse=True,
        )
        for old in candidates[keep:]:
            try:
                old.unlink()
                logger.debug(f"Rotated backup: {old}")
            except OSError as e:
                logger.warning(f"Backup rotation warning: {e}")

    def crawl(self, root_path: Path, extensions: List[str], max_depth: int) -> Generator[Tuple[Path, str], None, None]:
        """
        Yields (absolute_path, relative_path_str) for matching files.
        Hidden directories (including the state dir) and hidden files are skipped.
        """
        ext_set = {e.strip() if e.strip().startswith(".") else f".{e.strip()}" for e in extensions}

        if not root_path.exists():
            logger.error(f"Scan root does not exist: {root_path}")
            return

        for root, dirs, files in os.walk(root_path):
            current_depth = len(Path(root).relative_to(root_path).parts)
            if current_depth >= max_depth:
                del dirs[:]
                continue

            dirs[:] = sorted(d for d in dirs if not d.startswith("."))

            for file in sorted(files):
                if file.startswith(".") or not any(file.endswith(ext) for ext in ext_set):
                    continue

                abs_path = Path(root) / file
                try:
                    rel_path = str(abs_path.resolve().relative_to(self.workspace))
                except ValueError:
                    rel_path = str(abs_path)
                yield abs_path, rel_path
