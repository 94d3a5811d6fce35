"""Host certificate configuration dataclasses."""

from dataclasses import dataclass, field
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid

DEFAULT_CACHE_DIR = Path.home() / ".hostcert_requests"
DEFAULT_OUTPUT_DIR = Path("/tmp")
DEFAULT_USERCERT = Path.home() / ".globus" / "usercert.pem"
DEFAULT_USERKEY = Path.home() / ".globus" / "userkey.pem"

CA_CHAIN_URL = "https://pki.pca.dfn.de/kit-ca/pub/cacert/chain.txt"
SUBMIT_URL = "https://gridka-ca.kit.edu/sec/pem_req2.php"
RETRIEVE_URL = "https://gridka-ca.kit.edu/abholen3.php"

SALUTATION_MALE = "Herr"
SALUTATION_FEMALE = "Frau"


@dataclass(frozen=True)
class HostCertConfig:
    """Run configuration, built once from the command line and passed explicitly."""

    email: str = ""
    ra_id: str = ""
    organisation: str = ""
    phone: str = ""
    ra_name: str = ""
    domain: str = ""
    aliases: tuple[str, ...] = field(default_factory=tuple)
    comment: str = ""
    salutation: str = SALUTATION_MALE
    usercert: Path = DEFAULT_USERCERT
    userkey: Path = DEFAULT_USERKEY
    output_dir: Path = DEFAULT_OUTPUT_DIR
    cache_dir: Path = DEFAULT_CACHE_DIR
    ca_chain_url: str = CA_CHAIN_URL
    submit_url: str = SUBMIT_URL
    retrieve_url: str = RETRIEVE_URL
    country: str = "DE"
    organization: str = "GermanGrid"
    key_size: int = 2048
    timeout: float = 60.0

    def missing_request_fields(self) -> list[str]:
        """Return the names of mandatory REQUEST fields that are empty."""
        mandatory = {
            "email": self.email,
            "ra_id": self.ra_id,
            "organisation": self.organisation,
            "phone": self.phone,
            "ra_name": self.ra_name,
        }
        return [name for name, value in mandatory.items() if not value]


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name of a host certificate request."""

    country: str
    organization: str
    organizational_unit: str
    common_name: str

    @classmethod
    def for_host(cls, config: HostCertConfig, hostname: str) -> "DistinguishedName":
        """Build /C=DE/O=GermanGrid/OU=<organisation>/CN=<hostname>."""
        return cls(
            country=config.country,
            organization=config.organization,
            organizational_unit=config.organisation,
            common_name=hostname,
        )

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for request generation."""
        return x509.Name(
            [
                x509.NameAttribute(oid.NameOID.COUNTRY_NAME, self.country),
                x509.NameAttribute(oid.NameOID.ORGANIZATION_NAME, self.organization),
                x509.NameAttribute(oid.NameOID.ORGANIZATIONAL_UNIT_NAME, self.organizational_unit),
                x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name),
            ]
        )
