"""Restricted expansion of Concourse build variables."""

import os
import re
from typing import Mapping, Optional


# Only these names are ever read from the process environment.
ALLOWED_ENV_VARS = frozenset({
    "BUILD_ID",
    "BUILD_NAME",
    "BUILD_JOB_NAME",
    "BUILD_PIPELINE_NAME",
    "BUILD_TEAM_NAME",
    "ATC_EXTERNAL_URL",
})

_REFERENCE = re.compile(r"\$(?:\{(\w+)\}|(\w+))")


def safe_expand_env(text: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Substitute allow-listed $NAME / ${NAME} references in text.

    Unset allow-listed variables expand to "". Any other reference is
    returned exactly as written, so user supplied text (e.g. a comment
    file) cannot read arbitrary environment variables.
    """
    env = os.environ if environ is None else environ

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1) or match.group(2)
        if name in ALLOWED_ENV_VARS:
            return env.get(name, "")
        return match.group(0)

    return _REFERENCE.sub(replace, text)


def build_url(environ: Optional[Mapping[str, str]] = None) -> str:
    """Link to the current build in the Concourse UI."""
    env = os.environ if environ is None else environ
    return "/".join([
        env.get("ATC_EXTERNAL_URL", ""),
        "teams", env.get("BUILD_TEAM_NAME", ""),
        "pipelines", env.get("BUILD_PIPELINE_NAME", ""),
        "jobs", env.get("BUILD_JOB_NAME", ""),
        "builds", env.get("BUILD_NAME", ""),
    ])
