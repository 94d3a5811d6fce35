"""CA chain download into the request cache."""

from pathlib import Path

import requests
from cryptography import x509

from .errors import TrustAnchorError
from .logging_config import LOGGER

CHAIN_FILENAME = "kit-ca-chain.pem"


class TrustStoreDownloader:
    """Fetches the CA chain once and keeps it in the cache root.

    An existing chain file is reused as is; it is never refreshed.
    """

    def __init__(
        self,
        url: str,
        session: requests.Session | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize downloader.

        Args:
            url: Location of the PEM chain
            session: HTTP session, a new one by default
            timeout: Seconds before the download is abandoned
        """
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def ensure(self, cache_root: Path) -> Path:
        """Return the cached chain path, downloading it first if absent.

        Raises:
            TrustAnchorError: If the chain cannot be downloaded, parsed or written
        """
        chain_path = cache_root / CHAIN_FILENAME
        if chain_path.is_file():
            LOGGER.debug("Using cached CA chain %s", chain_path)
            return chain_path

        LOGGER.info("Downloading CA chain from %s", self.url)
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TrustAnchorError(f"CA chain download from {self.url} failed: {e}") from e

        try:
            certs = x509.load_pem_x509_certificates(response.content)
        except ValueError as e:
            raise TrustAnchorError(f"CA chain from {self.url} is not PEM: {e}") from e

        # A partial file must never be mistaken for the cached chain.
        part_path = chain_path.with_name(CHAIN_FILENAME + ".part")
        try:
            part_path.write_bytes(response.content)
            part_path.replace(chain_path)
        except OSError as e:
            part_path.unlink(missing_ok=True)
            raise TrustAnchorError(f"cannot write CA chain {chain_path}: {e}") from e

        LOGGER.info("Cached CA chain with %d certificates at %s", len(certs), chain_path)
        return chain_path
