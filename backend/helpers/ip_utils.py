"""
IP address and email helpers for privacy-preserving audit logs.

Masked contact rejections are logged for the operator; these helpers keep
the submitter's identity out of the log stream while leaving enough signal
to spot repeated abuse from one subnet or email domain.
"""

import hashlib
import ipaddress
from typing import Optional


def anonymize_ip(ip: Optional[str]) -> Optional[str]:
    """
    Anonymize an IP address for logging.

    For IPv4: zeros the last octet (192.168.1.100 -> 192.168.1.0)
    For IPv6: keeps the /48 network prefix

    Values that are not IP addresses (such as "unknown") are returned as-is.
    """
    if ip is None:
        return None

    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return ip

    if isinstance(addr, ipaddress.IPv4Address):
        return str(ipaddress.IPv4Network(f"{addr}/24", strict=False).network_address)
    return str(ipaddress.IPv6Network(f"{addr}/48", strict=False).network_address)


def hash_email_for_audit(email: str, salt: str = "contact_audit") -> str:
    """
    Hash the local part of an email address, keeping the domain.

    Format: first 8 chars of the hash + "...@" + domain
    ("a3f2c1d4...@example.com").
    """
    if not email or "@" not in email:
        return "invalid@unknown"

    local_part, domain = email.rsplit("@", 1)
    hash_value = hashlib.sha256(f"{salt}:{local_part}".encode("utf-8")).hexdigest()
    return f"{hash_value[:8]}...@{domain}"
