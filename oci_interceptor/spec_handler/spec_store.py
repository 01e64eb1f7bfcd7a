import os
import json
import stat
from typing import Any, Dict
from oci_interceptor.spec_handler.runtime_spec import RuntimeSpec
from oci_interceptor.utils.constants import CONFIG_FILENAME
from oci_interceptor.utils.errors import SpecParseError, SpecWriteError
from oci_interceptor.utils.logging import logger


class SpecStore:
    """Loads and saves the OCI runtime specification of a container bundle."""

    def get_config_path(self, bundle_path: str) -> str:
        """Return the path of config.json inside a bundle directory."""
        return os.path.join(bundle_path, CONFIG_FILENAME)

    def read_raw(self, bundle_path: str) -> Dict[str, Any]:
        """
        Read and parse the bundle's config.json without validating it.

        Raises:
            SpecParseError: If the file is missing, unreadable or not valid JSON
        """
        config_path = self.get_config_path(bundle_path)
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.error(f"Failed to read {config_path}: {str(e)}")
            raise SpecParseError(f"Unable to parse OCI runtime specification {config_path}: {e}") from e

    def _validate(self, config_path: str, data: Any) -> None:
        """Check the shape of the fields the interceptor reads or edits."""
        def fail(reason: str):
            logger.error(f"Invalid runtime specification {config_path}: {reason}")
            raise SpecParseError(f"Unable to parse OCI runtime specification {config_path}: {reason}")

        if not isinstance(data, dict):
            fail("top level is not an object")

        mounts = data.get('mounts')
        if mounts is not None:
            if not isinstance(mounts, list):
                fail("'mounts' is not a list")
            for mount in mounts:
                if not isinstance(mount, dict) or not isinstance(mount.get('destination'), str):
                    fail("mount without a destination")
                options = mount.get('options')
                if options is not None and not isinstance(options, list):
                    fail(f"options of mount {mount['destination']} are not a list")

        process = data.get('process')
        if process is not None:
            if not isinstance(process, dict):
                fail("'process' is not an object")
            env = process.get('env')
            if env is not None and (not isinstance(env, list) or not all(isinstance(e, str) for e in env)):
                fail("'process.env' is not a list of strings")

        hostname = data.get('hostname')
        if hostname is not None and not isinstance(hostname, str):
            fail("'hostname' is not a string")

    def load(self, bundle_path: str) -> RuntimeSpec:
        """
        Load the runtime specification of a bundle.

        Args:
            bundle_path: Container bundle directory

        Returns:
            RuntimeSpec: The parsed specification, unmodelled fields included

        Raises:
            SpecParseError: If config.json is missing, unreadable or malformed
        """
        config_path = self.get_config_path(bundle_path)
        data = self.read_raw(bundle_path)
        self._validate(config_path, data)
        logger.debug(f"Successfully read runtime specification from {config_path}")
        return RuntimeSpec(data)

    def save(self, bundle_path: str, spec: RuntimeSpec) -> None:
        """
        Write the runtime specification back to the bundle's config.json.

        The file is written to a sibling temporary file first and renamed over
        config.json, keeping the original file mode.

        Raises:
            SpecWriteError: On any serialization or I/O failure
        """
        config_path = self.get_config_path(bundle_path)
        tmp_path = config_path + ".tmp"
        try:
            payload = json.dumps(spec.to_dict(), ensure_ascii=False)
            mode = stat.S_IMODE(os.stat(config_path).st_mode) if os.path.exists(config_path) else None
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(payload)
            if mode is not None:
                os.chmod(tmp_path, mode)
            os.replace(tmp_path, config_path)
        except (TypeError, ValueError, OSError) as e:
            logger.error(f"Failed to write {config_path}: {str(e)}")
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise SpecWriteError(f"Unable to write updated OCI runtime specification {config_path}: {e}") from e
        logger.info(f"Wrote updated runtime specification to {config_path}")
