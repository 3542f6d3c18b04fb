"""
BuildConfig — optional npmbuild.yml settings.

Every field has a default, so a missing file means "use the defaults".
"""

from __future__ import annotations

from pydantic import BaseModel, Field


def _default_launch_env() -> dict[str, str]:
    return {
        "NPM_CONFIG_LOGLEVEL": "error",
        "NPM_CONFIG_PRODUCTION": "true",
    }


class BuildConfig(BaseModel):
    """Tunable knobs of the npm build."""

    npm_command: str = "npm"
    start_command: str = "npm start"
    install_flags: list[str] = Field(default_factory=lambda: ["--unsafe-perm"])
    launch_env: dict[str, str] = Field(default_factory=_default_launch_env)
