"""Parsing of hostname lines read from standard input."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .errors import UsageError


@dataclass
class HostLine:
    """Primary hostname and the aliases listed after it on the same line."""

    primary: str
    aliases: list[str] = field(default_factory=list)


def parse_host_line(line: str) -> HostLine | None:
    """Split a line into primary hostname and per-line aliases; None if blank.

    Raises:
        UsageError: If the primary name cannot be used as a cache file name
    """
    words = line.split()
    if not words:
        return None
    primary = words[0]
    # primary names become file names in the cache root
    if "/" in primary or primary.startswith("."):
        raise UsageError(f"invalid hostname {primary!r}")
    return HostLine(primary=primary, aliases=words[1:])


def read_host_lines(stream: Iterable[str]) -> Iterator[HostLine]:
    """Yield parsed host lines, skipping blank ones."""
    for line in stream:
        parsed = parse_host_line(line)
        if parsed is not None:
            yield parsed
