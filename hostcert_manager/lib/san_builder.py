"""Subject Alternative Name composition for host requests."""

from collections.abc import Sequence

from cryptography import x509


def qualify(name: str, domain_suffix: str) -> str:
    """Append the domain suffix to a host name if a suffix is configured."""
    if not domain_suffix:
        return name
    return f"{name}.{domain_suffix}"


def build_san_list(
    primary: str,
    domain_suffix: str,
    global_aliases: Sequence[str],
    per_line_aliases: Sequence[str],
) -> list[str]:
    """Compose the ordered SAN list for one host.

    Primary name first, then global aliases in configured order, then the
    aliases given on the input line. Repeated names are kept.

    Args:
        primary: Host name as read from input (unqualified)
        domain_suffix: Suffix appended to every name, empty for none
        global_aliases: Aliases added to every request
        per_line_aliases: Aliases read from the host's input line

    Returns:
        Fully qualified DNS names
    """
    names = [primary, *global_aliases, *per_line_aliases]
    return [qualify(name, domain_suffix) for name in names]


def build_san_extension(names: Sequence[str]) -> x509.SubjectAlternativeName:
    """Build the SubjectAlternativeName extension value for a request."""
    return x509.SubjectAlternativeName([x509.DNSName(name) for name in names])


def format_san_text(names: Sequence[str]) -> str:
    """Render names as 'DNS:a, DNS:b' for the submission comment."""
    return ", ".join(f"DNS:{name}" for name in names)
