"""Normalization of identity provider claim sets before they are stored."""

from collections.abc import Iterable, Mapping
from typing import Any, Final

# Registered JWT claims plus provider noise. Checked by name only, so an entry
# contributed for one provider is dropped for every provider.
EXCLUDED_CLAIMS: Final = frozenset(
    {
        # registered / protocol claims
        "iss",
        "aud",
        "exp",
        "iat",
        "nbf",
        "jti",
        "azp",
        "nonce",
        "auth_time",
        "at_hash",
        "c_hash",
        # Microsoft internals
        "aio",
        "ver",
        "rh",
        "uti",
        "ipaddr",
        # per-session values
        "sid",
        "s_hash",
    }
)


def build_exclusion_set(extra: Iterable[str] = ()) -> frozenset[str]:
    """Return the built-in exclusion set extended with operator supplied names."""
    return EXCLUDED_CLAIMS | frozenset(extra)


def filter_claims(
    claims: Mapping[str, Any], excluded: frozenset[str] = EXCLUDED_CLAIMS
) -> dict[str, Any]:
    """Drop excluded and null-valued claims.

    The input mapping is left untouched; a new dict is returned.
    """
    return {
        name: value
        for name, value in claims.items()
        if name not in excluded and value is not None
    }
