"""Error taxonomy for host certificate management.

Every error carries the process exit code used when it aborts a run. Errors
marked recoverable are handled per host and never reach ``main()``.
"""


class HostCertError(Exception):
    """Base class for all host certificate errors."""

    exit_code = 1


class UsageError(HostCertError):
    """No run-mode, unknown run-mode or missing mandatory REQUEST fields."""

    exit_code = 1


class CacheInitError(HostCertError):
    """Cache root directory could not be created."""

    exit_code = 2


class RequestGenerationError(HostCertError):
    """Key or signing request could not be generated or written to the cache."""

    exit_code = 3


class SubmissionError(HostCertError):
    """Signing request could not be submitted to the CA."""

    exit_code = 4


class PurgeError(HostCertError):
    """Cache root could not be removed."""

    exit_code = 5


class TrustAnchorError(HostCertError):
    """CA chain could not be downloaded into the cache."""

    exit_code = 6


class CredentialError(HostCertError):
    """Operator certificate or key could not be loaded."""

    exit_code = 7


class RetrievalError(HostCertError):
    """Recoverable: the retrieval endpoint could not be reached."""


class FetchValidationError(HostCertError):
    """Recoverable: the retrieved body is not a certificate (yet)."""


class DropNotFound(HostCertError):
    """Recoverable: nothing is cached for the hostname being dropped."""
