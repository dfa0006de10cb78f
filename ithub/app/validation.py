import ipaddress
import re

_OCTET = r'(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)'
IPV4_RE = re.compile(rf'^{_OCTET}\.{_OCTET}\.{_OCTET}\.{_OCTET}$')

# Contiguous masks only, /32 down to /0
VALID_SUBNET_MASKS = frozenset(
    str(ipaddress.IPv4Network(f'0.0.0.0/{prefix}').netmask) for prefix in range(33)
)

def is_valid_ip(ip):
    """Dotted-quad IPv4 check."""
    if not isinstance(ip, str):
        return False
    return IPV4_RE.match(ip) is not None

def is_valid_subnet_mask(mask):
    return is_valid_ip(mask) and mask in VALID_SUBNET_MASKS

def get_ip_range(ip, subnet_mask):
    """
    Returns the (network, broadcast) addresses of the network ``ip`` belongs to,
    or None when either argument is malformed.
    e.g., ("192.168.1.77", "255.255.255.0") -> ("192.168.1.0", "192.168.1.255")
    """
    if not is_valid_ip(ip) or not is_valid_subnet_mask(subnet_mask):
        return None
    parts = [int(p) for p in ip.split('.')]
    mask = [int(p) for p in subnet_mask.split('.')]
    start = '.'.join(str(p & m) for p, m in zip(parts, mask))
    end = '.'.join(str(p | (~m & 255)) for p, m in zip(parts, mask))
    return start, end
