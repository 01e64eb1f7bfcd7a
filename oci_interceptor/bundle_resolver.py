from typing import List, Optional
from oci_interceptor.utils.logging import logger
from oci_interceptor.utils.constants import BUNDLE_SHORT_FLAG, BUNDLE_LONG_FLAG


def get_bundle_path(options: List[str]) -> Optional[str]:
    """
    Extract the container bundle path from the options forwarded to the runtime.

    The OCI runtime command line is not specified, so this does not try to
    parse it. As a heuristic it looks for the first token starting with -b or
    --bundle, which runc uses for its create and run commands and which most
    other runtimes have adopted. The value is either joined with '=' or is the
    next token.

    Note that any token merely starting with -b matches (e.g. '-bundle-ish').

    Args:
        options: Arguments for the runtime, without the runtime binary itself

    Returns:
        Optional[str]: The bundle path, None if the call is not a creation call
    """
    for i, opt in enumerate(options):
        if not (opt.startswith(BUNDLE_SHORT_FLAG) or opt.startswith(BUNDLE_LONG_FLAG)):
            continue
        if '=' in opt:
            return opt.split('=', 1)[1]
        if i + 1 < len(options):
            return options[i + 1]
        logger.warning("Bundle flag %s has no value, treating call as non-create", opt)
        return None
    return None

