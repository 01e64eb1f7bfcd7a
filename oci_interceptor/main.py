#!/usr/bin/env python3
import sys
import argparse
from typing import List, Optional, Tuple
from oci_interceptor.interceptor_handler import InterceptorConfig, InterceptorHandler
from oci_interceptor.spec_handler.env_vars import parse_env_var_override
from oci_interceptor.utils.config import get_setting
from oci_interceptor.utils.constants import (
    VERSION, DEFAULT_RUNTIME_PATH, DEFAULT_DEBUG_OUTPUT_DIR, ENV_RUNTIME_PATH,
    INTERCEPTOR_OPTION_PREFIX, INTERCEPTOR_VALUE_OPTIONS
)
from oci_interceptor.utils.errors import ArgumentError
from oci_interceptor.utils.logging import logger

DESCRIPTION = '''OCI Interceptor - modifies container specs before calling an OCI runtime

Install in place of the runtime configured in your container engine. On
create calls (--bundle/-b present) the bundle's config.json is modified
according to the --oi-* options; every call is then forwarded unchanged to
the real runtime.

Interceptor options must come first. All other arguments are forwarded.

Examples:
  oci-interceptor --oi-readonly-networking-mounts create --bundle /path/to/bundle ctr1
  oci-interceptor --oi-env-var TZ=UTC --oi-env-var PATH=/usr/bin,force run -b . ctr1
'''


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='oci-interceptor',
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False
    )
    parser.add_argument('--oi-runtime-path', dest='runtime_path',
                        default=get_setting(ENV_RUNTIME_PATH, DEFAULT_RUNTIME_PATH),
                        help='Path to OCI runtime.')
    parser.add_argument('--oi-readonly-networking-mounts', dest='readonly_networking_mounts',
                        action='store_true',
                        help='Mount networking files as readonly.')
    parser.add_argument('--oi-env-var', dest='env_vars', action='append', default=[],
                        metavar='NAME=VALUE[,force]',
                        help='Set an environment variable in the container if not already set. '
                             'Append ",force" to override an existing value. Repeatable.')
    parser.add_argument('--oi-write-debug-output', dest='write_debug_output', action='store_true',
                        help='Write debug output to --oi-debug-output-dir.')
    parser.add_argument('--oi-debug-output-dir', dest='debug_output_dir',
                        default=DEFAULT_DEBUG_OUTPUT_DIR,
                        help='Debug output location when --oi-write-debug-output is enabled.')
    parser.add_argument('--oi-version', action='version', version=f'%(prog)s {VERSION}',
                        help='Print version')
    parser.add_argument('--oi-help', action='help', help='Print help')
    return parser


def split_args(argv: List[str]) -> Tuple[List[str], List[str]]:
    """
    Split the command line into interceptor options and runtime options.

    Interceptor options lead; the first other token starts the runtime options,
    which may contain anything, including --oi-* lookalikes. A literal '--'
    ends the interceptor options and is dropped.

    Returns:
        Tuple[List[str], List[str]]: interceptor options, runtime options
    """
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == '--':
            return argv[:i], argv[i + 1:]
        if not arg.startswith(INTERCEPTOR_OPTION_PREFIX):
            break
        if arg in INTERCEPTOR_VALUE_OPTIONS:
            i += 2
        else:
            i += 1
    i = min(i, len(argv))
    return argv[:i], argv[i:]


def parse_args(argv: Optional[List[str]] = None) -> Tuple[InterceptorConfig, List[str]]:
    """
    Parse the interceptor command line.

    Args:
        argv: Optional list of arguments. If None, uses sys.argv[1:].

    Returns:
        Tuple[InterceptorConfig, List[str]]: Interceptor settings and the runtime options

    Raises:
        ArgumentError: If an env override is malformed or no runtime options are given
    """
    if argv is None:
        argv = sys.argv[1:]
    interceptor_args, runtime_options = split_args(argv)
    args = build_parser().parse_args(interceptor_args)

    # Reject malformed overrides before any spec is touched
    env_overrides = [parse_env_var_override(raw) for raw in args.env_vars]

    if not runtime_options:
        raise ArgumentError("No OCI runtime options provided")

    config = InterceptorConfig(
        runtime_path=args.runtime_path,
        readonly_networking_mounts=args.readonly_networking_mounts,
        env_overrides=env_overrides,
        write_debug_output=args.write_debug_output,
        debug_output_dir=args.debug_output_dir,
    )
    return config, runtime_options


def main(argv: Optional[List[str]] = None):
    """
    Main entry point for the OCI interceptor.
    Modifies the container spec on create calls and forwards to the real runtime.
    """
    try:
        logger.info("OCI interceptor starting, intercepting command: %s", " ".join(sys.argv))
        config, runtime_options = parse_args(argv)
        handler = InterceptorHandler(config)
        exit_code = handler.intercept_command(runtime_options)
        logger.info("Command processing completed with exit code: %d", exit_code)
        sys.exit(exit_code)
    except Exception as e:
        logger.error(f"Fatal error: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
