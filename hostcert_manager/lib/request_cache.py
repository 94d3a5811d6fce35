"""Directory-backed cache of pending host certificate requests.

Each hostname owns up to three files in the cache root::

    <hostname>.hostkey.pem   private key
    <hostname>.hostreq.pem   signing request, present exactly while pending
    <hostname>.hostcert.pem  candidate certificate awaiting validation

There is no separate state ledger: the request file is the pending marker.
"""

import os
import shutil
from pathlib import Path

from .errors import CacheInitError, DropNotFound, PurgeError, RequestGenerationError
from .logging_config import LOGGER
from .models import FinalizeResult, HostRequest, RequestState

KEY_SUFFIX = ".hostkey.pem"
REQUEST_SUFFIX = ".hostreq.pem"
CERT_SUFFIX = ".hostcert.pem"


def _write_private(path: Path, data: bytes) -> None:
    """Write data to a file readable by the owner only."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


class RequestCache:
    """Maps canonical hostnames to their request artifacts on disk."""

    def __init__(self, root: Path) -> None:
        """Initialize cache.

        Args:
            root: Cache root directory, created by ensure_ready()
        """
        self.root = root

    def key_path(self, hostname: str) -> Path:
        return self.root / f"{hostname}{KEY_SUFFIX}"

    def request_path(self, hostname: str) -> Path:
        return self.root / f"{hostname}{REQUEST_SUFFIX}"

    def cert_path(self, hostname: str) -> Path:
        return self.root / f"{hostname}{CERT_SUFFIX}"

    def ensure_ready(self) -> None:
        """Create the cache root if absent.

        Raises:
            CacheInitError: If the directory cannot be created
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheInitError(f"{self.root} is missing and cannot be created: {e}") from e

    def has_pending(self, hostname: str) -> bool:
        return self.request_path(hostname).is_file()

    def state(self, hostname: str) -> RequestState | None:
        """Return PENDING while a request is cached, None otherwise."""
        return RequestState.PENDING if self.has_pending(hostname) else None

    def entry(self, hostname: str) -> HostRequest | None:
        """Return the pending entry of a hostname, or None if it has none."""
        if not self.has_pending(hostname):
            return None
        key_path = self.key_path(hostname)
        cert_path = self.cert_path(hostname)
        return HostRequest(
            hostname=hostname,
            state=RequestState.PENDING,
            key_path=key_path if key_path.is_file() else None,
            request_path=self.request_path(hostname),
            cert_path=cert_path if cert_path.is_file() else None,
        )

    def store(self, hostname: str, key_pem: bytes, request_pem: bytes) -> HostRequest:
        """Write key and request of a new pending entry.

        Both files are removed again if either write fails.

        Raises:
            RequestGenerationError: If the artifacts cannot be written
        """
        key_path = self.key_path(hostname)
        request_path = self.request_path(hostname)
        try:
            _write_private(key_path, key_pem)
            request_path.write_bytes(request_pem)
        except OSError as e:
            key_path.unlink(missing_ok=True)
            request_path.unlink(missing_ok=True)
            raise RequestGenerationError(f"cannot cache request for {hostname}: {e}") from e

        return HostRequest(
            hostname=hostname,
            state=RequestState.PENDING,
            key_path=key_path,
            request_path=request_path,
        )

    def attach_certificate(self, hostname: str, cert_bytes: bytes) -> Path:
        """Write a candidate certificate; the caller validates it afterwards."""
        cert_path = self.cert_path(hostname)
        cert_path.write_bytes(cert_bytes)
        return cert_path

    def discard_certificate(self, hostname: str) -> None:
        self.cert_path(hostname).unlink(missing_ok=True)

    def finalize(self, hostname: str, output_dir: Path) -> FinalizeResult:
        """Move certificate and key to the output directory and close the entry.

        If the cached key is missing the certificate is moved alone. The
        request file is removed last.

        Args:
            hostname: Canonical hostname
            output_dir: Destination for <hostname>.hostcert.pem and .hostkey.pem

        Returns:
            FinalizeResult with the destination paths
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        cert_path = self.cert_path(hostname)
        cert_target = output_dir / cert_path.name
        shutil.move(cert_path, cert_target)

        key_path = self.key_path(hostname)
        key_target: Path | None = output_dir / key_path.name
        if key_path.is_file():
            shutil.move(key_path, key_target)
        else:
            LOGGER.warning(
                "Key of %s is missing from the cache, moving certificate alone",
                hostname,
                extra={"hostname": hostname},
            )
            key_target = None

        self.request_path(hostname).unlink(missing_ok=True)
        return FinalizeResult(cert_path=cert_target, key_path=key_target)

    def remove(self, hostname: str) -> list[Path]:
        """Delete all artifacts of a hostname.

        Returns:
            Paths that were removed

        Raises:
            DropNotFound: If nothing was cached for the hostname
        """
        removed = []
        for path in (self.request_path(hostname), self.key_path(hostname), self.cert_path(hostname)):
            if path.exists():
                path.unlink()
                removed.append(path)
        if not removed:
            raise DropNotFound(f"no cached request for {hostname}")
        return removed

    def list_pending(self) -> list[str]:
        """Return hostnames that have a cached request."""
        if not self.root.is_dir():
            return []
        return sorted(
            path.name[: -len(REQUEST_SUFFIX)]
            for path in self.root.glob(f"*{REQUEST_SUFFIX}")
            if path.is_file()
        )

    def purge(self) -> None:
        """Delete the whole cache root, CA chain included.

        Raises:
            PurgeError: If the directory cannot be removed
        """
        if not self.root.exists():
            LOGGER.info("Cache %s does not exist, nothing to purge", self.root)
            return
        try:
            shutil.rmtree(self.root)
        except OSError as e:
            raise PurgeError(f"cannot purge cache {self.root}: {e}") from e
