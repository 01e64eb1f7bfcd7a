import os
import json
from typing import Any, Dict, List
from oci_interceptor.utils.constants import RUNTIME_CALLS_FILENAME, UNKNOWN_HOSTNAME
from oci_interceptor.utils.logging import logger


def _safe_filename(name: str) -> str:
    """Strip directory parts from a snapshot name taken from container config."""
    name = os.path.basename(name)
    if name in ("", ".", ".."):
        return UNKNOWN_HOSTNAME
    return name


class DebugOutputWriter:
    """Writes spec snapshots and the runtime call log to a debug directory.

    Callers decide how fatal a failure is; every method raises OSError.
    """

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def _ensure_output_dir(self) -> None:
        os.makedirs(self.output_dir, exist_ok=True)

    def write_snapshot(self, name: str, data: Dict[str, Any]) -> str:
        """
        Write a pretty-printed JSON snapshot named <name>.json.

        Only the last path component of name is used, so the snapshot always
        lands in the output directory.

        Returns:
            str: Path of the written snapshot
        """
        name = _safe_filename(name)
        self._ensure_output_dir()
        path = os.path.join(self.output_dir, f"{name}.json")
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
        logger.debug("Wrote debug snapshot %s", path)
        return path

    def record_runtime_call(self, runtime_path: str, options: List[str]) -> None:
        """Append the forwarded command line to runtime_calls.txt."""
        self._ensure_output_dir()
        path = os.path.join(self.output_dir, RUNTIME_CALLS_FILENAME)
        with open(path, 'a') as f:
            f.write(f"{runtime_path} {' '.join(options)}\n")
