"""HTTP client for the GridKa CA submission and retrieval pages."""

from pathlib import Path
from typing import Protocol

import requests

from .config import RETRIEVE_URL, SUBMIT_URL
from .errors import RetrievalError, SubmissionError
from .models import SubmissionForm

SUBMIT_BUTTON = "absenden"
REQUEST_TYPE = "2"


class CAClient(Protocol):
    """Submits signing requests and retrieves issued certificates."""

    def submit_request(self, hostname: str, request_pem: bytes, form: SubmissionForm) -> None: ...

    def fetch_certificate(self, hostname: str) -> bytes: ...


def build_form_fields(form: SubmissionForm) -> dict[str, str]:
    """Map submission metadata to the CA's form field names."""
    return {
        "anrede": form.salutation,
        "email": form.email,
        "telefon": form.phone,
        "raname": form.ra_name,
        "ra_ID": form.ra_id,
        "anmerkung": form.comment,
        "button": SUBMIT_BUTTON,
        "requesttyp": REQUEST_TYPE,
    }


class GridKaCAClient:
    """Client for the CA's web form endpoints (there is no API)."""

    def __init__(
        self,
        submit_url: str = SUBMIT_URL,
        retrieve_url: str = RETRIEVE_URL,
        client_cert: tuple[Path, Path] | None = None,
        ca_bundle: Path | None = None,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize CA client.

        Args:
            submit_url: Form endpoint accepting PEM requests
            retrieve_url: Endpoint returning a certificate by hostname
            client_cert: (certificate, unencrypted key) for submissions
            ca_bundle: CA chain used to verify the submission endpoint
            timeout: Seconds before a call is abandoned
            session: HTTP session, a new one by default
        """
        self.submit_url = submit_url
        self.retrieve_url = retrieve_url
        self.client_cert = client_cert
        self.ca_bundle = ca_bundle
        self.timeout = timeout
        self.session = session or requests.Session()

    def submit_request(self, hostname: str, request_pem: bytes, form: SubmissionForm) -> None:
        """Upload a signing request through the multipart submission form.

        Args:
            hostname: Canonical hostname, names the uploaded file
            request_pem: PEM encoded CSR
            form: Requester metadata

        Raises:
            SubmissionError: On transport failure or an HTTP error status
        """
        files = {
            "pemfile": (f"{hostname}.hostreq.pem", request_pem, "application/octet-stream"),
        }
        cert = None
        if self.client_cert is not None:
            cert = (str(self.client_cert[0]), str(self.client_cert[1]))
        verify: str | bool = str(self.ca_bundle) if self.ca_bundle else True

        try:
            response = self.session.post(
                self.submit_url,
                data=build_form_fields(form),
                files=files,
                cert=cert,
                verify=verify,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SubmissionError(f"submission for {hostname} to {self.submit_url} failed: {e}") from e

    def fetch_certificate(self, hostname: str) -> bytes:
        """Fetch whatever the retrieval endpoint returns for a hostname.

        The body is returned regardless of HTTP status; callers must validate it.

        Raises:
            RetrievalError: If the endpoint cannot be reached
        """
        try:
            response = self.session.get(
                self.retrieve_url,
                params={"hostname": hostname},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RetrievalError(f"retrieval for {hostname} failed: {e}") from e
        return response.content
