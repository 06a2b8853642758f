"""Identity provider claim capture and token projection.

Two workflows share one user property: ``capture_idp_claims`` stores the
claims a social provider issued at login, and ``add_idp_claims_to_tokens``
copies them into every access and ID token minted afterwards.
"""

__version__ = "0.1.0"
