"""
Short prefixed ID generator for marketplace graph nodes.

Format: {prefix}_{base36_random}
- po_xxxxxxxx  - post (album)
- co_xxxxxxxx  - collection
- pi_xxxxxxxx  - picture
- se_xxxxxxxx  - seller role node
- bu_xxxxxxxx  - buyer role node
- wa_xxxxxxxx  - wallet
- su_xxxxxxxx  - subscription edge
- no_xxxxxxxx  - notification
- pa_xxxxxxxx  - payout account
- wd_xxxxxxxx  - withdrawal request
- ca_xxxxxxxx  - category

User ids are not generated here: a user's id is its Stripe customer id.

8 chars base36 = 36^8 = 2.8 trillion unique IDs per type
"""
import secrets
import re

# Base36 alphabet (lowercase letters + digits)
ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE = len(ALPHABET)  # 36

# Valid prefixes
PREFIXES = {
    'post': 'po',
    'collection': 'co',
    'picture': 'pi',
    'seller': 'se',
    'buyer': 'bu',
    'wallet': 'wa',
    'subscription': 'su',
    'notification': 'no',
    'payout': 'pa',
    'withdrawal': 'wd',
    'category': 'ca',
}

# Regex for validation
ID_PATTERN = re.compile(r'^(' + '|'.join(PREFIXES.values()) + r')_[0-9a-z]{8}$')


def _random_base36(length: int = 8) -> str:
    """Generate random base36 string"""
    return ''.join(ALPHABET[secrets.randbelow(BASE)] for _ in range(length))


def generate_id(entity_type: str) -> str:
    """
    Generate a new short ID for the given entity type.

    Args:
        entity_type: One of the PREFIXES keys ('post', 'wallet', ...)

    Returns:
        Short ID like 'po_x5b8r2yj'

    Raises:
        ValueError: If entity_type is invalid
    """
    if entity_type not in PREFIXES:
        raise ValueError(f"Invalid entity type: {entity_type}. "
                         f"Must be one of: {list(PREFIXES.keys())}")

    return f"{PREFIXES[entity_type]}_{_random_base36(8)}"


def validate_id(id_str: str) -> bool:
    """Check if a string is a valid short ID."""
    if not id_str or not isinstance(id_str, str):
        return False
    return bool(ID_PATTERN.match(id_str))
