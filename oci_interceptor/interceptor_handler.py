import subprocess
from dataclasses import dataclass, field
from typing import List, Optional
from oci_interceptor.utils.logging import logger
from oci_interceptor.utils.constants import (
    DEFAULT_RUNTIME_PATH, DEFAULT_DEBUG_OUTPUT_DIR, SIGNAL_EXIT_CODE, UNKNOWN_HOSTNAME
)
from oci_interceptor.utils.errors import SubprocessLaunchError, SubprocessWaitError
from oci_interceptor.bundle_resolver import get_bundle_path
from oci_interceptor.debug_output import DebugOutputWriter
from oci_interceptor.spec_handler.env_vars import EnvVarOverride, modify_env_vars
from oci_interceptor.spec_handler.networking_mounts import modify_networking_mounts
from oci_interceptor.spec_handler.runtime_spec import RuntimeSpec
from oci_interceptor.spec_handler.spec_store import SpecStore


@dataclass
class InterceptorConfig:
    """Settings for one interceptor invocation."""
    runtime_path: str = DEFAULT_RUNTIME_PATH
    readonly_networking_mounts: bool = False
    env_overrides: List[EnvVarOverride] = field(default_factory=list)
    write_debug_output: bool = False
    debug_output_dir: str = DEFAULT_DEBUG_OUTPUT_DIR


class InterceptorHandler:
    def __init__(self, config: InterceptorConfig, spec_store: Optional[SpecStore] = None,
                 debug_writer: Optional[DebugOutputWriter] = None):
        self.config = config
        self.spec_store = spec_store or SpecStore()
        self.debug_writer = debug_writer or DebugOutputWriter(config.debug_output_dir)
        logger.info("InterceptorHandler initialized with runtime at: %s", config.runtime_path)

    def _write_debug_snapshot(self, spec: RuntimeSpec, suffix: str) -> None:
        """Write a spec snapshot when debug output is enabled, warning on failure."""
        if not self.config.write_debug_output:
            return
        name = f"{spec.hostname or UNKNOWN_HOSTNAME}_{suffix}"
        try:
            self.debug_writer.write_snapshot(name, spec.to_dict())
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to write debug snapshot %s: %s", name, str(e))

    def _record_runtime_call(self, options: List[str]) -> None:
        if not self.config.write_debug_output:
            return
        try:
            self.debug_writer.record_runtime_call(self.config.runtime_path, options)
        except OSError as e:
            logger.warning("Failed to record runtime call: %s", str(e))

    def apply_mutations(self, spec: RuntimeSpec) -> RuntimeSpec:
        """Apply every enabled mutation policy, env overrides first."""
        if self.config.env_overrides:
            logger.info("Applying %d environment overrides", len(self.config.env_overrides))
            spec = modify_env_vars(spec, self.config.env_overrides)
        if self.config.readonly_networking_mounts:
            logger.info("Making networking mounts read-only")
            spec = modify_networking_mounts(spec)
        return spec

    def _handle_create_command(self, bundle_path: str) -> None:
        """Load, mutate and save the bundle's runtime specification.

        Raises:
            SpecParseError: If the specification cannot be loaded
            SpecWriteError: If the mutated specification cannot be saved
        """
        logger.info("Processing create command for bundle %s", bundle_path)
        spec = self.spec_store.load(bundle_path)
        self._write_debug_snapshot(spec, "original")

        modified = self.apply_mutations(spec)
        if modified == spec:
            logger.info("No changes to runtime specification of bundle %s", bundle_path)
            return

        self._write_debug_snapshot(modified, "modified")
        self.spec_store.save(bundle_path, modified)

    def _execute_command(self, options: List[str]) -> int:
        """
        Run the real OCI runtime with the original options and wait for it.

        Returns:
            int: The runtime's exit code, SIGNAL_EXIT_CODE if it was killed by a signal

        Raises:
            SubprocessLaunchError: If the runtime could not be executed
            SubprocessWaitError: If the runtime's exit status could not be obtained
        """
        cmd = [self.config.runtime_path] + options
        logger.info("Executing command: %s", " ".join(cmd))
        self._record_runtime_call(options)
        try:
            process = subprocess.Popen(cmd)
        except OSError as e:
            logger.error("Failed to execute underlying OCI runtime %s: %s", self.config.runtime_path, str(e))
            raise SubprocessLaunchError(f"Failed to execute underlying OCI runtime {self.config.runtime_path}: {e}") from e

        try:
            returncode = process.wait()
        except OSError as e:
            logger.error("Failed to wait on OCI runtime process %d: %s", process.pid, str(e))
            raise SubprocessWaitError(f"Failed to wait on OCI runtime process: {e}") from e

        if returncode < 0:
            logger.warning("OCI runtime was terminated by signal %d", -returncode)
            return SIGNAL_EXIT_CODE
        logger.info("OCI runtime exited with code %d", returncode)
        return returncode

    def intercept_command(self, options: List[str]) -> int:
        """
        Intercept a runtime call, mutating the bundle's spec on creation calls.

        Args:
            options: Arguments for the runtime, forwarded unchanged

        Returns:
            int: Exit code to terminate with
        """
        logger.info("Raw command received: %s", " ".join(options))

        bundle_path = get_bundle_path(options)
        if bundle_path is None:
            logger.info("No bundle in command, passing through")
        else:
            self._handle_create_command(bundle_path)

        return self._execute_command(options)
