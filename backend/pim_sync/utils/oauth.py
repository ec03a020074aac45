"""OAuth 1.0a (HMAC-SHA256) request signing for token-based ERP auth."""

from __future__ import annotations

from oauthlib.oauth1 import SIGNATURE_HMAC_SHA256, SIGNATURE_TYPE_AUTH_HEADER, Client


def build_authorization_header(
    method: str,
    url: str,
    *,
    consumer_key: str,
    consumer_secret: str,
    token_id: str,
    token_secret: str,
    realm: str | None = None,
    nonce: str | None = None,
    timestamp: int | None = None,
) -> str:
    """Return the ``Authorization`` header value for one request.

    Only the URL and its query take part in the signature; JSON bodies are
    not signed. ``nonce`` and ``timestamp`` are generated when omitted; pass
    them to get a reproducible signature.
    """
    client = Client(
        consumer_key,
        client_secret=consumer_secret,
        resource_owner_key=token_id,
        resource_owner_secret=token_secret,
        signature_method=SIGNATURE_HMAC_SHA256,
        signature_type=SIGNATURE_TYPE_AUTH_HEADER,
        realm=realm or None,
        nonce=nonce,
        timestamp=str(timestamp) if timestamp is not None else None,
    )
    _, headers, _ = client.sign(url, http_method=method.upper())
    return headers["Authorization"]
