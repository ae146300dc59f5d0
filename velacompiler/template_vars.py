"""Platform variables made available to text templates."""

from __future__ import annotations

from collections.abc import Mapping

_PREFIX = "vela_"


def convert_platform_vars(env: Mapping[str, str], name: str) -> dict[str, str]:
    """Collect ``VELA_*`` variables, lower-cased and without the prefix.

    The template name is added under ``template_name``.
    """
    envs = {
        key.lower().removeprefix(_PREFIX): value
        for key, value in env.items()
        if key.lower().startswith(_PREFIX)
    }
    envs["template_name"] = name
    return envs


class PlatformVars:
    """Looks up platform variables by name for use inside a template."""

    def __init__(self, envs: Mapping[str, str]):
        self.envs = dict(envs)

    def lookup(self, name: str) -> str:
        """Return the variable's value, or an empty string if it is unknown.

        The name is matched case-insensitively, with or without ``vela_``.
        """
        key = name.lower().removeprefix(_PREFIX)
        return self.envs.get(key, "")

    def __call__(self, name: str) -> str:
        return self.lookup(name)