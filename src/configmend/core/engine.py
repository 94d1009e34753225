#!/usr/bin/env python3
"""
Configmend ENGINE
-----------------
Runs the HealingPipeline over files and streams.

Responsibilities:
- Workspace confinement (no path traversal out of the workspace)
- Ignore rules and defaults from ConfigManager
- Backup + atomic write when a fix is applied
- Batch crawling and result aggregation

Every call returns a plain result dict with a status code; file-level
problems (missing, empty, outside the workspace) never raise.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from configmend.core.config import ConfigManager
from configmend.core.io import FileSystemManager
from configmend.core.pipeline import HealingPipeline
from configmend.models import HealReport

logger = logging.getLogger("configmend.engine")


class MendEngine:
    """
    Principal orchestrator for configuration files on disk.
    """

    def __init__(self,
                 workspace_path: str,
                 config: Optional[ConfigManager] = None,
                 suggester: Optional[Any] = None):
        """
        Args:
            workspace_path: Root directory every audited path must stay inside.
            config: Preloaded configuration (loaded from the workspace when omitted).
            suggester: Optional external suggester handed to the pipeline.
        """
        self.workspace = Path(workspace_path).resolve()
        self.fs = FileSystemManager(self.workspace)
        self.config = config or ConfigManager(self.workspace)
        self.pipeline = HealingPipeline(suggester=suggester)
        logger.info(f"Engine initialized for workspace {self.workspace}")

    # =========================================================================
    # PUBLIC API: SINGLE FILE / STREAM
    # =========================================================================

    def audit_and_heal_file(self,
                            relative_path: str,
                            dry_run: bool = True,
                            schema: Optional[str] = None,
                            use_ai: Optional[bool] = None,
                            check_only: bool = False) -> Dict[str, Any]:
        """
        Performs a check or fix cycle on a single file.

        With check_only the pipeline's read-only check runs and nothing is
        written. Otherwise the fix runs, and unless dry_run is set a changed
        file is backed up and rewritten atomically.
        """
        full_path = (self.workspace / relative_path).resolve()

        # =====================================================================
        # SECURITY: PREVENT DIRECTORY TRAVERSAL
        # =====================================================================
        try:
            full_path.relative_to(self.workspace)
        except ValueError:
            return self._file_error(relative_path, "SECURITY_ERROR", "Path outside workspace")

        # =====================================================================
        # CONFIG CHECK: IGNORE RULES
        # =====================================================================
        if self.config.is_ignored(str(relative_path)):
            return {
                "file_path": Path(relative_path).name,
                "full_path": str(relative_path),
                "success": True,
                "status": "IGNORED",
                "written": False,
                "backup_created": None,
                "raw_content": None,
                "healed_content": None,
                "report": None,
                "logic_logs": ["File ignored by configmend config"],
                "timestamp": time.time(),
                "processing_time_seconds": 0.0
            }

        if not full_path.is_file():
            return self._file_error(relative_path, "FILE_NOT_FOUND", "Path does not exist")

        start_time = time.time()
        try:
            raw_text = self.fs.read_text(full_path)
            if not raw_text.strip():
                return self._file_error(relative_path, "EMPTY_FILE", "File contains no content")

            report = self._run(raw_text, schema, use_ai, check_only)
            result = self._build_result(relative_path, raw_text, report, check_only, start_time)
            result["file_path"] = Path(relative_path).name

            # =================================================================
            # ATOMIC WRITE WITH BACKUP
            # =================================================================
            if not dry_run and not check_only and result["healed_content"] is not None:
                self.fs.ensure_workspace()
                backup_path = self.fs.create_backup(full_path)
                result["backup_created"] = str(backup_path.relative_to(self.workspace))

                self.fs.atomic_write(full_path, report.fixed_content)
                result["written"] = True
                logger.info(f"Mended and saved: {relative_path}")

            return result

        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Engine error on {relative_path}: {e}", exc_info=True)
            return self._file_error(relative_path, "ENGINE_ERROR", str(e), time.time() - start_time)

    def audit_stream(self,
                     content: str,
                     source_name: str = "stdin",
                     schema: Optional[str] = None,
                     use_ai: Optional[bool] = None,
                     check_only: bool = False) -> Dict[str, Any]:
        """
        Audits content from an input stream without disk I/O.
        Returns the standard result dict (written=False).
        """
        start_time = time.time()
        if not content.strip():
            return self._file_error(source_name, "EMPTY_FILE", "Stream contains no content")

        report = self._run(content, schema, use_ai, check_only)
        return self._build_result(source_name, content, report, check_only, start_time)

    # =========================================================================
    # PUBLIC API: BATCH HEALING
    # =========================================================================

    def batch_heal(self,
                   root_path: str,
                   extensions: List[str],
                   max_depth: int = 10,
                   dry_run: bool = True,
                   schema: Optional[str] = None,
                   use_ai: Optional[bool] = None,
                   check_only: bool = False) -> List[Dict[str, Any]]:
        """
        Crawls the filesystem from root_path and processes every matching file.

        Args:
            root_path: Starting directory for recursive search
            extensions: File extensions to process (e.g., ['.yaml', '.yml', '.json'])
            max_depth: Maximum directory depth to search
            dry_run: If True, preview changes without writing

        Returns:
            One result dict per file, in crawl order.
        """
        search_root = Path(root_path).resolve()
        if not search_root.exists():
            logger.error(f"Batch path does not exist: {root_path}")
            return []

        results = []
        for _, rel_path in self.fs.crawl(search_root, extensions, max_depth):
            results.append(self.audit_and_heal_file(
                rel_path, dry_run=dry_run, schema=schema, use_ai=use_ai, check_only=check_only
            ))

        logger.info(f"Batch processed {len(results)} file(s) under {search_root}")
        return results

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _run(self, text: str, schema: Optional[str], use_ai: Optional[bool], check_only: bool) -> HealReport:
        schema = schema if schema is not None else self.config.schema
        use_ai = use_ai if use_ai is not None else self.config.use_ai
        if check_only:
            return self.pipeline.check(text, schema=schema, use_ai=use_ai)
        return self.pipeline.fix(text, schema=schema, use_ai=use_ai)

    def _build_result(self, path: str, raw_text: str, report: HealReport,
                      check_only: bool, start_time: float) -> Dict[str, Any]:
        fixed = report.fixed_content
        is_modified = fixed is not None and raw_text.strip() != fixed.strip()

        if check_only:
            success = report.is_valid
        else:
            success = fixed is not None

        return {
            "file_path": path,
            "full_path": str(path),
            "success": success,
            "status": report.status,
            "written": False,
            "backup_created": None,
            "raw_content": raw_text,
            "healed_content": fixed if is_modified else None,
            "report": report,
            "logic_logs": report.logic_logs,
            "timestamp": time.time(),
            "processing_time_seconds": time.time() - start_time
        }

    def _file_error(self,
                    path: str,
                    status: str,
                    error: str,
                    processing_time: float = 0.0) -> Dict[str, Any]:
        """Constructs a standardized error result object."""
        return {
            "file_path": path,
            "full_path": path,
            "status": status,
            "error": error,
            "success": False,
            "written": False,
            "backup_created": None,
            "raw_content": None,
            "healed_content": None,
            "report": None,
            "logic_logs": [f"Error: {error}"],
            "timestamp": time.time(),
            "processing_time_seconds": processing_time
        }
