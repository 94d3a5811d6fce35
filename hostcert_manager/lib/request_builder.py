"""Host key and certificate signing request generation."""

from collections.abc import Sequence
from typing import Protocol

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from .cert_utils import generate_private_key, serialize_csr, serialize_private_key
from .config import DistinguishedName, HostCertConfig
from .errors import RequestGenerationError
from .models import GeneratedRequest
from .san_builder import build_san_extension


class KeyAndCSRGenerator(Protocol):
    """Produces a fresh host key and a signing request for it."""

    def generate(self, hostname: str, san_names: Sequence[str]) -> GeneratedRequest: ...


class CryptographyRequestGenerator:
    """Builds host keys and CSRs with the cryptography X.509 builder."""

    def __init__(self, config: HostCertConfig) -> None:
        """Initialize generator with configuration.

        Args:
            config: Run configuration with key size and subject fields
        """
        self.config = config

    def build_csr(
        self,
        hostname: str,
        san_names: Sequence[str],
        private_key,
    ) -> x509.CertificateSigningRequest:
        """Build and sign a CSR for a host.

        Subject and SANs are passed as typed values, so host names and
        aliases never end up in a textual request configuration.

        Args:
            hostname: Canonical hostname (CN)
            san_names: Ordered DNS names for the SubjectAlternativeName extension
            private_key: Host private key used to sign the request

        Returns:
            Signed certificate signing request
        """
        subject = DistinguishedName.for_host(self.config, hostname).to_x509_name()
        builder = x509.CertificateSigningRequestBuilder().subject_name(subject)
        if san_names:
            builder = builder.add_extension(build_san_extension(san_names), critical=False)
        return builder.sign(private_key, hashes.SHA256())

    def generate(self, hostname: str, san_names: Sequence[str]) -> GeneratedRequest:
        """Generate an unencrypted host key and its CSR.

        Raises:
            RequestGenerationError: If key generation or signing fails
        """
        try:
            private_key = generate_private_key(self.config.key_size)
            csr = self.build_csr(hostname, san_names, private_key)
        except (ValueError, TypeError) as e:
            raise RequestGenerationError(f"cannot generate request for {hostname}: {e}") from e

        return GeneratedRequest(
            key_pem=serialize_private_key(private_key),
            request_pem=serialize_csr(csr),
        )
