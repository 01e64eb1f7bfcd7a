"""Constants used across the OCI interceptor codebase."""

import os

VERSION = "0.3.0"

# Configuration paths
USER_CONFIG_PATH = "/etc/oci-interceptor"
CONFIG_PATH = os.path.join(USER_CONFIG_PATH, "oci-interceptor.env")

# Environment variables
ENV_CONFIG_PATH = "OCI_INTERCEPTOR_CONFIG"
ENV_RUNTIME_PATH = "OCI_INTERCEPTOR_RUNTIME_PATH"
ENV_LOG_LEVEL = "OCI_INTERCEPTOR_LOG_LEVEL"
ENV_LOG_FILE = "OCI_INTERCEPTOR_LOG_FILE"

# OCI runtime related
DEFAULT_RUNTIME_PATH = "runc"
CONFIG_FILENAME = "config.json"
BUNDLE_SHORT_FLAG = "-b"
BUNDLE_LONG_FLAG = "--bundle"

# Exit code reported when the runtime was terminated by a signal
SIGNAL_EXIT_CODE = -1

# Interceptor command line options. Everything from the first token that is
# not one of these on is forwarded to the runtime.
INTERCEPTOR_OPTION_PREFIX = "--oi-"
INTERCEPTOR_VALUE_OPTIONS = {
    "--oi-runtime-path",
    "--oi-env-var",
    "--oi-debug-output-dir",
}

# Spec mutations
NETWORKING_MOUNT_DESTINATIONS = ("/etc/hosts", "/etc/hostname", "/etc/resolv.conf")
READONLY_MOUNT_OPTION = "ro"
FORCE_ENV_VAR_SUFFIX = ",force"

# Debug output
DEFAULT_DEBUG_OUTPUT_DIR = "/var/log/oci-interceptor"
RUNTIME_CALLS_FILENAME = "runtime_calls.txt"
UNKNOWN_HOSTNAME = "unknown_hostname"

# Logging
LOG_FILE = None
DEFAULT_LOG_LEVEL = "WARNING"
