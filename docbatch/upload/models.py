import dataclasses
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class UploadFailureReason(str, Enum):
    UNAUTHORIZED = "unauthorized"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class UploadResult:
    """Outcome of one upload call; failures are returned, not raised."""

    success: bool
    remote_id: str | None = None
    remote_link: str | None = None
    error: str | None = None
    reason: UploadFailureReason | None = None

    @classmethod
    def succeeded(cls, remote_id: str, remote_link: str | None) -> "UploadResult":
        return cls(success=True, remote_id=remote_id, remote_link=remote_link)

    @classmethod
    def failed(cls, error: str, reason: UploadFailureReason) -> "UploadResult":
        return cls(success=False, error=error, reason=reason)


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadRecord:
    """One upload attempt as kept in the upload history."""

    id: str
    document_id: str
    filename: str
    started_at: datetime
    status: UploadStatus = UploadStatus.PENDING
    remote_id: str | None = None
    remote_link: str | None = None
    completed_at: datetime | None = None
    error: str | None = None
    retry_count: int = 0

    @classmethod
    def start(cls, document_id: str, filename: str, started_at: datetime) -> "UploadRecord":
        return cls(
            id=uuid.uuid4().hex,
            document_id=document_id,
            filename=filename,
            started_at=started_at,
        )

    def with_result(self, result: UploadResult, completed_at: datetime) -> "UploadRecord":
        """Return the record closed out with *result*.

        A failure keeps the error and bumps ``retry_count``; a success clears the error.
        """
        if result.success:
            return dataclasses.replace(
                self,
                status=UploadStatus.SUCCESS,
                remote_id=result.remote_id,
                remote_link=result.remote_link,
                completed_at=completed_at,
                error=None,
            )
        return dataclasses.replace(
            self,
            status=UploadStatus.FAILED,
            error=result.error or "Unknown error",
            completed_at=completed_at,
            retry_count=self.retry_count + 1,
        )

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["status"] = self.status.value
        data["started_at"] = self.started_at.isoformat()
        data["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UploadRecord":
        completed_at = data.get("completed_at")
        return cls(
            id=data["id"],
            document_id=data["document_id"],
            filename=data["filename"],
            started_at=datetime.fromisoformat(data["started_at"]),
            status=UploadStatus(data["status"]),
            remote_id=data.get("remote_id"),
            remote_link=data.get("remote_link"),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            error=data.get("error"),
            retry_count=data.get("retry_count", 0),
        )
