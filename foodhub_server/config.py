"""Runtime configuration loaded from environment variables."""

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .models import AuthCredentials

DEFAULT_GRAPHQL_URL = "http://localhost:4000/graphql"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """FoodHub server settings."""

    graphql_url: str = Field(default=DEFAULT_GRAPHQL_URL, description="GraphQL endpoint")
    email: Optional[str] = Field(None, description="Auto-login email")
    password: Optional[str] = Field(None, description="Auto-login password")
    token: Optional[str] = Field(None, description="Pre-issued bearer token")
    session_file: str = Field(
        default_factory=lambda: str(Path.home() / ".foodhub_session.json"),
        description="Where the session token is persisted",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    refetch_after_mutation: bool = Field(
        default=True, description="Refetch the cart in the background after each mutation"
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from FOODHUB_* environment variables."""
        env = os.environ if environ is None else environ
        values: dict = {}

        if env.get("FOODHUB_GRAPHQL_URL"):
            values["graphql_url"] = env["FOODHUB_GRAPHQL_URL"]
        if env.get("FOODHUB_EMAIL"):
            values["email"] = env["FOODHUB_EMAIL"]
        if env.get("FOODHUB_PASSWORD"):
            values["password"] = env["FOODHUB_PASSWORD"]
        if env.get("FOODHUB_TOKEN"):
            values["token"] = env["FOODHUB_TOKEN"]
        if env.get("FOODHUB_SESSION_FILE"):
            values["session_file"] = env["FOODHUB_SESSION_FILE"]
        if env.get("FOODHUB_TIMEOUT"):
            values["timeout"] = env["FOODHUB_TIMEOUT"]
        if env.get("FOODHUB_REFETCH_AFTER_MUTATION"):
            values["refetch_after_mutation"] = (
                env["FOODHUB_REFETCH_AFTER_MUTATION"].strip().lower() in _TRUE_VALUES
            )

        return cls(**values)

    @property
    def credentials(self) -> Optional[AuthCredentials]:
        if self.email and self.password:
            return AuthCredentials(email=self.email, password=self.password)
        return None
