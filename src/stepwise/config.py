"""Configuration for hosting workflows.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The engine itself takes plain arguments (see
:class:`stepwise.workflow.sequencer.WorkflowConf`); these settings only feed
the server adapter and logging setup.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkflowSettings(BaseSettings):
    """Settings for serving a workflow.

    Environment variables:
    - LOG_LEVEL                          (optional)
    - STEPWISE_RESTART_LABEL             (optional)
    - STEPWISE_DETECT_DUPLICATE_LABELS   (optional)
    - STEPWISE_SESSION_COOKIE            (optional)
    - STEPWISE_SESSION_STATE_FILE        (optional)
    - STEPWISE_MAX_SESSIONS              (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    restart_label: str = Field(
        default="start",
        validation_alias="STEPWISE_RESTART_LABEL",
        description="Reserved label that clears the session and redirects to the first step",
    )

    detect_duplicate_labels: bool = Field(
        default=True,
        validation_alias="STEPWISE_DETECT_DUPLICATE_LABELS",
        description="Fail traversals that pass the same step label twice",
    )

    session_cookie: str = Field(
        default="stepwise_session",
        validation_alias="STEPWISE_SESSION_COOKIE",
        description="Cookie holding the opaque session id",
    )

    session_state_file: Path | None = Field(
        default=None,
        validation_alias="STEPWISE_SESSION_STATE_FILE",
        description="JSON file where sessions are persisted; in-memory when unset",
    )

    max_sessions: int = Field(
        default=10_000,
        validation_alias="STEPWISE_MAX_SESSIONS",
        description="Sessions kept by the server; the least recently used is evicted first",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("restart_label", "session_cookie")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()
