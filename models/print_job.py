"""
Print job data models.

These models are parsed views of Epson Connect responses. The provider owns
the job's lifecycle (created -> processing -> completed | failed); these
objects are point-in-time snapshots and are never mutated locally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from core.exceptions import AuthenticationError, JobCreationError, JobStatusError


@dataclass(frozen=True)
class Credentials:
    """
    Bearer token and printer id from one token exchange.

    Valid for one orchestrated run unless the token cache is enabled.
    """

    token: str
    printer_id: str
    expires_in: Optional[float] = None
    """Lifetime in seconds as reported by the provider (if any)."""

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks
        return f"Credentials(printer_id={self.printer_id!r}, expires_in={self.expires_in!r})"

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "Credentials":
        """
        Parse the OAuth token response.

        Raises:
            AuthenticationError: If access_token or subject_id is missing
        """
        token = data.get("access_token")
        printer_id = data.get("subject_id")
        if not token or not printer_id:
            raise AuthenticationError(
                "Token response is missing access_token or subject_id",
                details={"keys": sorted(data.keys())}
            )

        expires_in = data.get("expires_in")
        return cls(
            token=token,
            printer_id=printer_id,
            expires_in=float(expires_in) if expires_in is not None else None,
        )


@dataclass(frozen=True)
class JobTicket:
    """Job id and one-time upload URI returned by job creation."""

    job_id: str
    upload_uri: str

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "JobTicket":
        """
        Parse the job-creation response.

        Raises:
            JobCreationError: If id or upload_uri is missing
        """
        job_id = data.get("id")
        upload_uri = data.get("upload_uri")
        if not job_id or not upload_uri:
            raise JobCreationError(
                "Job creation response is missing id or upload_uri",
                job_id=job_id,
                details={"keys": sorted(data.keys())}
            )
        return cls(job_id=job_id, upload_uri=upload_uri)


@dataclass(frozen=True)
class PrintJob:
    """
    A remote print job as last observed.

    The status string is echoed verbatim from the provider.
    """

    job_id: str
    status: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)
    """Full provider JSON, for fields this model does not name."""

    @classmethod
    def from_response(cls, data: Dict[str, Any], job_id: Optional[str] = None) -> "PrintJob":
        """
        Parse a job status response.

        Args:
            data: JSON body of GET .../jobs/{job_id}
            job_id: Job id requested, used if the body omits it

        Raises:
            JobStatusError: If the body carries no job id at all
        """
        resolved_id = data.get("id") or job_id
        if not resolved_id:
            raise JobStatusError(
                "Job status response has no id",
                details={"keys": sorted(data.keys())}
            )

        return cls(
            job_id=resolved_id,
            status=data.get("status", "unknown"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "id": self.job_id,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class PrintImage:
    """One image in a batch: raw bytes plus the caller's file name."""

    data: bytes
    file_name: str

    def __repr__(self) -> str:
        return f"PrintImage(file_name={self.file_name!r}, size={len(self.data)})"


@dataclass(frozen=True)
class PrintOutcome:
    """
    Result of printing one image in a batch.

    Exactly one of ``job`` / ``error`` is set.
    """

    file_name: str
    succeeded: bool
    job: Optional[PrintJob] = None
    error: Optional[str] = None
    stage: Optional[str] = None
    """Pipeline stage that failed (failures only)."""

    @classmethod
    def success(cls, file_name: str, job: PrintJob) -> "PrintOutcome":
        return cls(file_name=file_name, succeeded=True, job=job)

    @classmethod
    def failure(cls, file_name: str, error: str, stage: Optional[str] = None) -> "PrintOutcome":
        return cls(file_name=file_name, succeeded=False, error=error, stage=stage)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "file_name": self.file_name,
            "succeeded": self.succeeded,
            "job": self.job.to_dict() if self.job else None,
            "error": self.error,
            "stage": self.stage,
        }
