"""Result models for host certificate operations."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class RunMode(str, Enum):
    """Run-modes accepted on the command line (case-sensitive)."""

    REQUEST = "REQUEST"
    GET = "GET"
    DROP = "DROP"
    GETALL = "GETALL"
    LIST = "LIST"
    PURGE = "PURGE"


class RequestState(str, Enum):
    """Lifecycle state of one hostname.

    FETCHED and DROPPED are terminal: the host has no cache entry anymore.
    """

    PENDING = "pending"
    FETCHED = "fetched"
    DROPPED = "dropped"


@dataclass
class HostRequest:
    """One hostname under management and its artifacts."""

    hostname: str
    state: RequestState
    aliases: list[str] = field(default_factory=list)
    key_path: Path | None = None
    request_path: Path | None = None
    cert_path: Path | None = None


@dataclass
class GeneratedRequest:
    """Freshly generated host key and signing request, both PEM encoded."""

    key_pem: bytes
    request_pem: bytes


@dataclass
class SubmissionForm:
    """Metadata fields submitted along with a signing request."""

    salutation: str
    email: str
    phone: str
    ra_name: str
    ra_id: str
    comment: str


@dataclass
class FinalizeResult:
    """Output paths of a finalized host certificate.

    key_path is None when the cached key was missing at finalize time.
    """

    cert_path: Path
    key_path: Path | None


@dataclass
class CertificateSummary:
    """Loggable facts about a retrieved certificate."""

    common_name: str
    serial_number: str
    not_after: str


@dataclass
class BatchResult:
    """Outcome counts of one run over many hostnames."""

    requested: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    listed: list[str] = field(default_factory=list)

    def record(self, request: HostRequest) -> None:
        """Account for the outcome of one fetch or drop."""
        if request.state is RequestState.FETCHED:
            self.fetched.append(request.hostname)
        elif request.state is RequestState.DROPPED:
            self.dropped.append(request.hostname)
        else:
            self.pending.append(request.hostname)
