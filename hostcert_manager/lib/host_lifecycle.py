"""Per-hostname request lifecycle against the CA and the request cache."""

from collections.abc import Iterable, Sequence

from .ca_client import CAClient
from .cert_verifier import CertVerifier
from .config import HostCertConfig
from .errors import DropNotFound, FetchValidationError, RetrievalError
from .host_input import HostLine
from .logging_config import LOGGER
from .models import BatchResult, HostRequest, RequestState, RunMode, SubmissionForm
from .request_builder import KeyAndCSRGenerator
from .request_cache import RequestCache
from .san_builder import build_san_list, format_san_text, qualify


class HostLifecycleManager:
    """Drives hostnames through REQUEST, GET, DROP and the cache-wide modes.

    State per hostname lives only in the cache directory:
    Absent -> REQUEST -> Pending -> GET (certificate valid) -> Absent, or
    Pending -> DROP -> Absent. Repeating REQUEST on a pending host is a no-op.
    """

    def __init__(
        self,
        config: HostCertConfig,
        cache: RequestCache,
        generator: KeyAndCSRGenerator,
        ca_client: CAClient,
        verifier: CertVerifier | None = None,
    ) -> None:
        """Initialize manager with its collaborators.

        Args:
            config: Immutable run configuration
            cache: Request cache, already ensured ready
            generator: Host key and CSR generator
            ca_client: CA submission and retrieval client
            verifier: Certificate parser deciding retrieval success
        """
        self.config = config
        self.cache = cache
        self.generator = generator
        self.ca_client = ca_client
        self.verifier = verifier or CertVerifier()

    def canonical(self, primary: str) -> str:
        """Return the cache key of a hostname read from input."""
        return qualify(primary, self.config.domain)

    def _submission_form(self, san_names: Sequence[str]) -> SubmissionForm:
        comment = " ".join(part for part in (self.config.comment, format_san_text(san_names)) if part)
        return SubmissionForm(
            salutation=self.config.salutation,
            email=self.config.email,
            phone=self.config.phone,
            ra_name=self.config.ra_name,
            ra_id=self.config.ra_id,
            comment=comment,
        )

    def _rollback(self, hostname: str) -> None:
        try:
            removed = self.cache.remove(hostname)
        except DropNotFound:
            return
        LOGGER.warning(
            "Rolled back %d cached artifacts of %s",
            len(removed),
            hostname,
            extra={"hostname": hostname},
        )

    def _still_pending(self, hostname: str) -> HostRequest:
        return self.cache.entry(hostname) or HostRequest(hostname=hostname, state=RequestState.PENDING)

    def request_for(self, primary: str, per_line_aliases: Sequence[str] = ()) -> HostRequest:
        """Generate, cache and submit a request for one host unless one is pending.

        Args:
            primary: Hostname as read from input
            per_line_aliases: Aliases listed after it on the input line

        Returns:
            The pending HostRequest

        Raises:
            RequestGenerationError: If key, CSR or cache files cannot be produced
            SubmissionError: If the CA submission fails; on this or any other
                error during submission the host's artifacts are removed
                before the error propagates
        """
        hostname = self.canonical(primary)
        aliases = [*self.config.aliases, *per_line_aliases]

        existing = self.cache.entry(hostname)
        if existing is not None:
            LOGGER.info(
                "A request for %s is already pending, skipping",
                hostname,
                extra={"hostname": hostname},
            )
            existing.aliases = aliases
            return existing

        san_names = build_san_list(primary, self.config.domain, self.config.aliases, per_line_aliases)

        LOGGER.info("Generating new request for %s", hostname, extra={"hostname": hostname})
        generated = self.generator.generate(hostname, san_names)
        entry = self.cache.store(hostname, generated.key_pem, generated.request_pem)
        entry.aliases = aliases

        LOGGER.info("Submitting request for %s to CA", hostname, extra={"hostname": hostname})
        try:
            self.ca_client.submit_request(hostname, generated.request_pem, self._submission_form(san_names))
        except BaseException:
            self._rollback(hostname)
            raise

        LOGGER.info("Request for %s submitted", hostname, extra={"hostname": hostname})
        return entry

    def fetch_for(self, hostname: str) -> HostRequest:
        """Try to retrieve and finalize the certificate of one host.

        A body that does not parse as a certificate means "not issued yet":
        the candidate is discarded and the request stays pending.

        Args:
            hostname: Canonical hostname

        Returns:
            HostRequest in FETCHED state with output paths, or PENDING
        """
        LOGGER.info("Fetching host certificate of %s", hostname, extra={"hostname": hostname})
        try:
            body = self.ca_client.fetch_certificate(hostname)
        except RetrievalError as e:
            LOGGER.warning("%s", e, extra={"hostname": hostname})
            return self._still_pending(hostname)

        try:
            self.cache.attach_certificate(hostname, body)
            cert = self.verifier.parse(body)
        except FetchValidationError as e:
            self.cache.discard_certificate(hostname)
            LOGGER.info(
                "Certificate of %s is not available yet: %s",
                hostname,
                e,
                extra={"hostname": hostname},
            )
            return self._still_pending(hostname)
        except OSError as e:
            self.cache.discard_certificate(hostname)
            LOGGER.error("Cannot store certificate of %s: %s", hostname, e, extra={"hostname": hostname})
            return self._still_pending(hostname)

        summary = self.verifier.describe(cert)
        try:
            result = self.cache.finalize(hostname, self.config.output_dir)
        except OSError as e:
            LOGGER.error(
                "Cannot move certificate of %s to %s: %s",
                hostname,
                self.config.output_dir,
                e,
                extra={"hostname": hostname},
            )
            return self._still_pending(hostname)

        LOGGER.info(
            "Moved host certificate of %s (serial %s, valid until %s) to %s",
            hostname,
            summary.serial_number,
            summary.not_after,
            self.config.output_dir,
            extra={"hostname": hostname},
        )
        return HostRequest(
            hostname=hostname,
            state=RequestState.FETCHED,
            key_path=result.key_path,
            cert_path=result.cert_path,
        )

    def drop_for(self, hostname: str) -> HostRequest | None:
        """Remove the cached artifacts of one host.

        Returns:
            HostRequest in DROPPED state, or None if nothing was cached
        """
        LOGGER.info("Dropping the request for %s", hostname, extra={"hostname": hostname})
        try:
            self.cache.remove(hostname)
        except DropNotFound as e:
            LOGGER.warning("%s", e, extra={"hostname": hostname})
            return None
        return HostRequest(hostname=hostname, state=RequestState.DROPPED)

    def list_all(self) -> list[str]:
        """Return hostnames with a pending request."""
        return self.cache.list_pending()

    def fetch_all(self) -> BatchResult:
        """Attempt retrieval for every pending request."""
        result = BatchResult()
        for hostname in self.list_all():
            result.record(self.fetch_for(hostname))
        return result

    def purge_all(self) -> None:
        """Delete the whole cache, CA chain included."""
        LOGGER.info("Clearing cache %s", self.cache.root)
        self.cache.purge()

    def run(self, mode: RunMode, lines: Iterable[HostLine] = ()) -> BatchResult:
        """Apply a run-mode to input lines or to the whole cache.

        REQUEST aborts on the first fatal error. GET and GETALL never abort
        on a single host.

        Args:
            mode: Selected run-mode
            lines: Parsed input lines (REQUEST, GET, DROP only)

        Returns:
            BatchResult summarizing the run
        """
        if mode is RunMode.GETALL:
            return self.fetch_all()

        result = BatchResult()
        if mode is RunMode.LIST:
            result.listed = self.list_all()
        elif mode is RunMode.PURGE:
            self.purge_all()
        elif mode is RunMode.REQUEST:
            for line in lines:
                hostname = self.canonical(line.primary)
                was_pending = self.cache.state(hostname) is RequestState.PENDING
                self.request_for(line.primary, line.aliases)
                (result.skipped if was_pending else result.requested).append(hostname)
        elif mode is RunMode.GET:
            for line in lines:
                result.record(self.fetch_for(self.canonical(line.primary)))
        elif mode is RunMode.DROP:
            for line in lines:
                hostname = self.canonical(line.primary)
                dropped = self.drop_for(hostname)
                if dropped is None:
                    result.not_found.append(hostname)
                else:
                    result.record(dropped)
        return result
