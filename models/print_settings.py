"""
Print settings supplied by the caller for one print request.

Settings are never validated locally. Whatever the caller passes goes to
Epson Connect as-is; only omitted fields are filled from the defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from core.settings import EpsonSettings


# camelCase keys sent by the web front end -> dataclass field names
_CAMEL_CASE_KEYS = {
    "paperSize": "paper_size",
    "mediaType": "media_type",
    "jobName": "job_name",
    "printMode": "print_mode",
}


@dataclass(frozen=True)
class PrintSettings:
    """
    Caller-supplied print options. Immutable per request.

    Any field left as None falls back to the configured default when the
    job payload is built.
    """

    paper_size: Optional[str] = None
    """Epson media size code, e.g. 'ms_a4', 'ms_l'."""

    media_type: Optional[str] = None
    """Epson media type code, e.g. 'mt_plainpaper', 'mt_photopaper'."""

    quality: Optional[str] = None
    """Print quality: 'draft', 'normal', 'high'."""

    borderless: Optional[bool] = None

    copies: Optional[int] = None

    job_name: Optional[str] = None

    print_mode: Optional[str] = None
    """'document' or 'photo'."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (only fields that were supplied)."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PrintSettings":
        """
        Create from a request dictionary.

        Accepts both snake_case and the camelCase keys used by the front end.
        Unknown keys are ignored.
        """
        if not data:
            return cls()

        values: Dict[str, Any] = {}
        for key, value in data.items():
            field_name = _CAMEL_CASE_KEYS.get(key, key)
            if field_name in cls.__dataclass_fields__:
                values[field_name] = value
        return cls(**values)

    def to_job_payload(self, defaults: EpsonSettings) -> Dict[str, Any]:
        """
        Build the Epson Connect job-creation body.

        Args:
            defaults: Settings providing print mode, media size/type defaults

        Returns:
            Dictionary ready to be sent as JSON to the jobs endpoint
        """
        return {
            "job_name": self.job_name or defaults.default_job_name,
            "print_mode": self.print_mode or defaults.print_mode,
            "print_setting": {
                "media_size": self.paper_size or defaults.default_media_size,
                "media_type": self.media_type or defaults.default_media_type,
                "borderless": self.borderless if self.borderless is not None else False,
                "print_quality": self.quality or defaults.default_quality,
                "source": "auto",
                "color_mode": "color",
                "reverse_order": False,
                "copies": self.copies if self.copies is not None else 1,
                "collate": True,
            },
        }
