#!/usr/bin/env python3
"""Manage (generate, submit, retrieve, drop) GridKa CA host certificate requests.

Host names are read from stdin, one per line. Words following the first one
on a line are aliases of that host. Pending requests are kept in a cache
directory until their certificate has been retrieved.
"""

import argparse
import sys
from collections.abc import Iterable
from pathlib import Path

from hostcert_manager.lib.ca_client import GridKaCAClient
from hostcert_manager.lib.cert_verifier import CertVerifier
from hostcert_manager.lib.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_USERCERT,
    DEFAULT_USERKEY,
    SALUTATION_FEMALE,
    SALUTATION_MALE,
    HostCertConfig,
)
from hostcert_manager.lib.credentials import client_credentials
from hostcert_manager.lib.errors import HostCertError, UsageError
from hostcert_manager.lib.host_input import read_host_lines
from hostcert_manager.lib.host_lifecycle import HostLifecycleManager
from hostcert_manager.lib.logging_config import LOGGER, set_verbose
from hostcert_manager.lib.models import BatchResult, RunMode
from hostcert_manager.lib.request_builder import CryptographyRequestGenerator
from hostcert_manager.lib.request_cache import RequestCache
from hostcert_manager.lib.trust_store import TrustStoreDownloader

RUN_MODES_HELP = """\
run-modes (-M, case-sensitive):
  REQUEST  request new host certificates for the hosts read from stdin
  GET      retrieve host certificates for the hosts read from stdin
  DROP     dismiss the requests of the hosts read from stdin
  GETALL   attempt to retrieve certificates for all pending requests
  LIST     print the hosts with a pending request
  PURGE    completely purge the cache of pending requests

-D, -E, -I, -O, -P and -R look like options but -E, -I, -O, -P and -R are
mandatory in REQUEST mode.
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting errors as UsageError instead of exiting."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        description="Manage host certificate requests towards the GridKa CA",
        epilog=RUN_MODES_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-M", dest="mode", help="run-mode, see below")
    parser.add_argument("-D", dest="domain", default="", help="domain suffix appended to all host names")
    parser.add_argument("-E", dest="email", default="", help="email address submitted with requests")
    parser.add_argument("-I", dest="ra_id", default="", help="ID of the Registration Authority administrator")
    parser.add_argument("-O", dest="organisation", default="", help="OU part of the host's DN")
    parser.add_argument("-P", dest="phone", default="", help="phone number submitted with requests")
    parser.add_argument("-R", dest="ra_name", default="", help="name of the Registration Authority administrator")
    parser.add_argument(
        "-a",
        dest="aliases",
        default="",
        help="comma separated alternative host names included with all requests",
    )
    parser.add_argument(
        "-c",
        dest="usercert",
        type=Path,
        default=DEFAULT_USERCERT,
        help=f"user certificate used for submissions (default: {DEFAULT_USERCERT})",
    )
    parser.add_argument(
        "-k",
        dest="userkey",
        type=Path,
        default=DEFAULT_USERKEY,
        help=f"user private key, prompted for a pass phrase if encrypted (default: {DEFAULT_USERKEY})",
    )
    parser.add_argument("-f", dest="female", action="store_true", help="address the requester as female")
    parser.add_argument("-m", dest="comment", default="", help="comment supplied with all requests")
    parser.add_argument(
        "-o",
        dest="output_dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"where retrieved host keys and certificates are put (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=DEFAULT_CACHE_DIR,
        help=f"request cache directory (default: {DEFAULT_CACHE_DIR})",
    )
    parser.add_argument("--timeout", type=float, default=60.0, help="HTTP timeout in seconds (default: 60)")
    parser.add_argument("-v", dest="verbose", action="store_true", help="debug logging")
    return parser


def parse_mode(value: str | None) -> RunMode:
    """Return the run-mode for a -M value.

    Raises:
        UsageError: If no mode was given or it is unknown
    """
    if not value:
        raise UsageError("No run-mode was selected!")
    try:
        return RunMode(value)
    except ValueError as e:
        raise UsageError(
            f"Invalid run-mode '{value}' selected - note that the run-mode identifier is case-sensitive!"
        ) from e


def build_config(args: argparse.Namespace) -> HostCertConfig:
    """Build the immutable run configuration from parsed arguments."""
    return HostCertConfig(
        email=args.email,
        ra_id=args.ra_id,
        organisation=args.organisation,
        phone=args.phone,
        ra_name=args.ra_name,
        domain=args.domain,
        aliases=tuple(alias for alias in args.aliases.split(",") if alias),
        comment=args.comment,
        salutation=SALUTATION_FEMALE if args.female else SALUTATION_MALE,
        usercert=args.usercert,
        userkey=args.userkey,
        output_dir=args.output_dir,
        cache_dir=args.cache_dir,
        timeout=args.timeout,
    )


def manage_hostcerts(config: HostCertConfig, mode: RunMode, stream: Iterable[str]) -> BatchResult:
    """Run one mode against the cache.

    REQUEST additionally needs the CA chain and the operator's credentials;
    the other modes never prompt for a pass phrase.

    Args:
        config: Run configuration
        mode: Selected run-mode
        stream: Input lines, read only by REQUEST, GET and DROP

    Returns:
        BatchResult of the run

    Raises:
        HostCertError: On any fatal error
    """
    cache = RequestCache(config.cache_dir)
    cache.ensure_ready()

    generator = CryptographyRequestGenerator(config)
    verifier = CertVerifier()
    lines = read_host_lines(stream) if mode in (RunMode.REQUEST, RunMode.GET, RunMode.DROP) else ()

    if mode is RunMode.REQUEST:
        LOGGER.info("Requesting new host certificates as %s", config.email)
        chain_path = TrustStoreDownloader(config.ca_chain_url, timeout=config.timeout).ensure(cache.root)
        with client_credentials(config.usercert, config.userkey) as client_cert:
            ca_client = GridKaCAClient(
                submit_url=config.submit_url,
                retrieve_url=config.retrieve_url,
                client_cert=client_cert,
                ca_bundle=chain_path,
                timeout=config.timeout,
            )
            manager = HostLifecycleManager(config, cache, generator, ca_client, verifier)
            return manager.run(mode, lines)

    ca_client = GridKaCAClient(
        submit_url=config.submit_url,
        retrieve_url=config.retrieve_url,
        timeout=config.timeout,
    )
    manager = HostLifecycleManager(config, cache, generator, ca_client, verifier)
    return manager.run(mode, lines)


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the selected mode and map errors to exit codes.

    Returns:
        Exit code (0 for success, the failing error's exit code otherwise)
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        mode = parse_mode(args.mode)
        config = build_config(args)
        if mode is RunMode.REQUEST:
            missing = config.missing_request_fields()
            if missing:
                raise UsageError(
                    "At least one of the mandatory operands for the REQUEST run-mode is missing: "
                    + ", ".join(missing)
                )
    except UsageError as e:
        LOGGER.error("%s", e)
        parser.print_help(sys.stderr)
        return e.exit_code

    set_verbose(args.verbose)

    try:
        result = manage_hostcerts(config, mode, sys.stdin)
    except HostCertError as e:
        LOGGER.error("%s run aborted: %s", mode.value, e)
        return e.exit_code
    except Exception as e:
        LOGGER.exception("%s run failed: %s", mode.value, e)
        return 1

    if mode is RunMode.LIST:
        for hostname in result.listed:
            print(hostname)
    elif mode is RunMode.REQUEST:
        LOGGER.info("Submitted %d requests, skipped %d pending", len(result.requested), len(result.skipped))
    elif mode in (RunMode.GET, RunMode.GETALL):
        LOGGER.info("Retrieved %d certificates, %d still pending", len(result.fetched), len(result.pending))
    elif mode is RunMode.DROP:
        LOGGER.info("Dropped %d requests, %d not found", len(result.dropped), len(result.not_found))

    return 0


if __name__ == "__main__":
    sys.exit(main())
