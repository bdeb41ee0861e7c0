"""
Typed Epson Connect settings.

Config holds raw class attributes (or Flask's app.config mapping). The
client and services take an EpsonSettings instead so they never reach into
Flask or the environment themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

API_VERSION = "1"


@dataclass(frozen=True)
class EpsonSettings:
    """Connection details and print defaults for one Epson Connect account."""

    host: str = "api.epsonconnect.com"
    client_id: str = ""
    client_secret: str = ""
    device: str = ""

    print_mode: str = "document"
    default_media_size: str = "ms_a4"
    default_media_type: str = "mt_plainpaper"
    default_quality: str = "normal"
    default_job_name: str = "Print Job"

    request_timeout_seconds: float = 30.0
    max_retries: int = 0
    retry_backoff_seconds: float = 1.0
    token_cache_seconds: float = 0.0
    batch_delay_seconds: float = 1.0

    @property
    def base_url(self) -> str:
        """Root of the printing API, e.g. https://host/api/1/printing."""
        return f"https://{self.host}/api/{API_VERSION}/printing"

    @classmethod
    def from_config(cls, config: Union[Mapping[str, Any], type]) -> "EpsonSettings":
        """
        Build settings from a Config class or Flask's app.config.

        Args:
            config: Object with EPSON_* attributes, or a mapping with EPSON_* keys

        Returns:
            EpsonSettings instance
        """
        if isinstance(config, Mapping):
            get = config.get
        else:
            def get(key, default=None):
                return getattr(config, key, default)

        defaults = cls()
        return cls(
            host=get("EPSON_HOST") or defaults.host,
            client_id=get("EPSON_CLIENT_ID", "") or "",
            client_secret=get("EPSON_CLIENT_SECRET", "") or "",
            device=get("EPSON_DEVICE", "") or "",
            print_mode=get("EPSON_PRINT_MODE") or defaults.print_mode,
            default_media_size=get("EPSON_DEFAULT_MEDIA_SIZE") or defaults.default_media_size,
            default_media_type=get("EPSON_DEFAULT_MEDIA_TYPE") or defaults.default_media_type,
            request_timeout_seconds=float(
                get("EPSON_REQUEST_TIMEOUT_SECONDS", defaults.request_timeout_seconds)
            ),
            max_retries=int(get("EPSON_MAX_RETRIES", defaults.max_retries)),
            retry_backoff_seconds=float(
                get("EPSON_RETRY_BACKOFF_SECONDS", defaults.retry_backoff_seconds)
            ),
            token_cache_seconds=float(
                get("EPSON_TOKEN_CACHE_SECONDS", defaults.token_cache_seconds)
            ),
            batch_delay_seconds=float(
                get("PRINT_BATCH_DELAY_SECONDS", defaults.batch_delay_seconds)
            ),
        )
