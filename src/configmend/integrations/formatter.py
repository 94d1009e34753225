"""
Configmend EXTERNAL FORMATTER
-----------------------------
Thin wrapper around an infrastructure-as-code formatter binary
(`terraform fmt -recursive -list=true`). Not used for YAML/JSON.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Tuple

logger = logging.getLogger("configmend.integrations.formatter")

FORMAT_TIMEOUT = 10


def format_directory(path: str, binary: str = "terraform", timeout: int = FORMAT_TIMEOUT) -> Tuple[str, bool]:
    """
    Runs `<binary> fmt -recursive` inside `path`.

    Returns:
        (combined stdout/stderr, success)
    """
    directory = Path(path)
    if not directory.is_dir():
        return f"{path} is not a directory", False

    executable = shutil.which(binary)
    if executable is None:
        logger.warning(f"Formatter binary '{binary}' not found on PATH")
        return f"{binary} binary not found; files left unformatted", False

    logger.info(f"Running {binary} fmt in directory: {directory}")
    try:
        completed = subprocess.run(
            [executable, "fmt", "-recursive", "-list=true"],
            cwd=str(directory),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"{binary} fmt timed out after {timeout}s")
        return f"{binary} fmt timed out", False
    except OSError as e:
        logger.error(f"{binary} fmt could not start: {e}")
        return f"{binary} fmt failed: {e}", False

    output = completed.stdout.decode("utf-8", errors="replace") if completed.stdout else ""
    if completed.returncode != 0:
        logger.error(f"{binary} fmt exited with {completed.returncode}")
        return output, False
    return output, True
