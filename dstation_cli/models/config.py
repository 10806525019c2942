"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from yarl import URL

DEFAULT_NAS_URL = "https://localhost:5001"

# Extra detail groups the task API can attach to list/getinfo responses
ADDITIONAL_FIELDS = ("detail", "transfer", "file", "tracker", "peer")


class NasConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Connection & Authentication
    url: str = DEFAULT_NAS_URL
    username: str = ""
    password: str = Field(default="", repr=False)
    timeout: float | None = None

    # Task Display
    additional: str = "detail,transfer"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensures the NAS address is an absolute http(s) URL."""
        try:
            url = URL(v)
            valid = (
                url.is_absolute()
                and url.scheme in ("http", "https")
                and bool(url.host)
                and bool(url.port)
            )
        except ValueError:
            valid = False
        if not valid:
            raise ValueError(
                f"NAS URL must look like https://192.168.1.2:5001, got: {v!r}"
            )
        return v.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Ensures a reasonable request timeout."""
        if v is not None and not 1 <= v <= 600:
            raise ValueError("Timeout must be between 1 and 600 seconds.")
        return v

    @field_validator("additional")
    @classmethod
    def validate_additional(cls, v: str) -> str:
        """Checks that every requested detail group is known to the task API."""
        fields = [f.strip() for f in v.split(",") if f.strip()]
        unknown = [f for f in fields if f not in ADDITIONAL_FIELDS]
        if unknown:
            raise ValueError(
                f"Unknown additional field(s): {', '.join(unknown)}. "
                f"Choose from: {', '.join(ADDITIONAL_FIELDS)}."
            )
        return ",".join(fields)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)
