from oci_interceptor.spec_handler.runtime_spec import RuntimeSpec
from oci_interceptor.utils.constants import NETWORKING_MOUNT_DESTINATIONS, READONLY_MOUNT_OPTION
from oci_interceptor.utils.logging import logger


def modify_networking_mounts(spec: RuntimeSpec) -> RuntimeSpec:
    """
    Make the networking-related file mounts read-only:

    - /etc/hosts
    - /etc/hostname
    - /etc/resolv.conf

    'ro' is appended to the options of each matching mount that lacks it.
    Mounts without an options list are left alone.

    Returns:
        RuntimeSpec: A new specification, the input is not modified
    """
    result = spec.copy()
    for mount in result.mounts:
        if mount.get('destination') not in NETWORKING_MOUNT_DESTINATIONS:
            continue
        options = mount.get('options')
        if options is None or READONLY_MOUNT_OPTION in options:
            continue
        logger.debug("Mounting %s read-only", mount['destination'])
        options.append(READONLY_MOUNT_OPTION)
    return result
