"""Validation of bodies returned by the retrieval endpoint."""

from cryptography import x509

from .cert_utils import deserialize_certificate, extract_certificate_summary
from .errors import FetchValidationError
from .models import CertificateSummary


class CertVerifier:
    """Decides whether a retrieved body is a real certificate.

    The retrieval endpoint answers 200 whether or not the certificate has
    been issued, so parsing the body is the only readiness signal.
    """

    def parse(self, data: bytes) -> x509.Certificate:
        """Parse a PEM certificate.

        Raises:
            FetchValidationError: If the body is empty or not a PEM certificate
        """
        if not data or not data.strip():
            raise FetchValidationError("empty response body")
        try:
            return deserialize_certificate(data)
        except ValueError as e:
            raise FetchValidationError(f"response is not a certificate: {e}") from e

    def describe(self, cert: x509.Certificate) -> CertificateSummary:
        """Summarize a parsed certificate for logging."""
        return extract_certificate_summary(cert)
