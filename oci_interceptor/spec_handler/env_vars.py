from dataclasses import dataclass
from typing import List
from oci_interceptor.spec_handler.runtime_spec import RuntimeSpec
from oci_interceptor.utils.constants import FORCE_ENV_VAR_SUFFIX
from oci_interceptor.utils.errors import MalformedEnvVarError
from oci_interceptor.utils.logging import logger

ENV_VAR_FORMAT_ERROR = "environment variables must be in NAME=VALUE format"


@dataclass(frozen=True)
class EnvVar:
    name: str
    value: str


@dataclass(frozen=True)
class EnvVarOverride:
    """A requested environment change; force replaces an existing value."""
    name: str
    value: str
    force: bool = False

    @classmethod
    def from_env_var(cls, var: EnvVar, force: bool = False) -> 'EnvVarOverride':
        return cls(var.name, var.value, force)


def parse_env_var(raw: str) -> EnvVar:
    """
    Parse a NAME=VALUE token.

    Raises:
        MalformedEnvVarError: If there is no '=' or the name or value is empty
    """
    if '=' not in raw:
        raise MalformedEnvVarError(f"{ENV_VAR_FORMAT_ERROR}: {raw!r}")
    name, value = raw.split('=', 1)
    if not name or not value:
        raise MalformedEnvVarError(f"{ENV_VAR_FORMAT_ERROR}: {raw!r}")
    return EnvVar(name, value)


def parse_env_var_override(raw: str) -> EnvVarOverride:
    """Parse the command line form NAME=VALUE[,force]."""
    force = raw.endswith(FORCE_ENV_VAR_SUFFIX)
    if force:
        raw = raw[:-len(FORCE_ENV_VAR_SUFFIX)]
    return EnvVarOverride.from_env_var(parse_env_var(raw), force)


def modify_env_vars(spec: RuntimeSpec, overrides: List[EnvVarOverride]) -> RuntimeSpec:
    """
    Apply environment overrides to the container process.

    An existing variable keeps its position; it is only replaced when the
    override is forced. Variables not yet defined are appended. A spec without
    process.env is returned unchanged.

    Args:
        spec: Loaded runtime specification, left untouched
        overrides: Overrides applied in order

    Returns:
        RuntimeSpec: A new specification with the overrides applied
    """
    result = spec.copy()
    env = result.env
    if env is None:
        logger.info("Spec has no process environment, skipping %d env overrides", len(overrides))
        return result

    for var in overrides:
        prefix = f"{var.name}="
        for i, existing in enumerate(env):
            if existing.startswith(prefix):
                if var.force:
                    logger.debug("Replacing %s with forced value", var.name)
                    env[i] = f"{var.name}={var.value}"
                else:
                    logger.debug("Keeping existing value of %s", var.name)
                break
        else:
            logger.debug("Adding env var %s", var.name)
            env.append(f"{var.name}={var.value}")

    return result
