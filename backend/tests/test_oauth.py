import base64
import hashlib
import hmac
import re
from urllib.parse import unquote

from pim_sync.utils.oauth import build_authorization_header

SIGNED = dict(
    consumer_key="ck",
    consumer_secret="cs",
    token_id="tk",
    token_secret="ts",
    nonce="n",
    timestamp=100,
)

QUERY_BASE_STRING = (
    "GET&https%3A%2F%2Ferp.test%2Frec%2Fv1%2Fitem&"
    "a%3D1%26b%3D2%26oauth_consumer_key%3Dck%26oauth_nonce%3Dn%26"
    "oauth_signature_method%3DHMAC-SHA256%26oauth_timestamp%3D100%26"
    "oauth_token%3Dtk%26oauth_version%3D1.0"
)


def header_params(header: str) -> dict[str, str]:
    assert header.startswith("OAuth ")
    return {k: unquote(v) for k, v in re.findall(r'(\w+)="([^"]*)"', header)}


def hmac_sha256(base_string: str, key: bytes = b"cs&ts") -> str:
    digest = hmac.new(key, base_string.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def test_signature_matches_known_base_string():
    header = build_authorization_header(
        "get", "https://erp.test/rec/v1/item?b=2&a=1", realm="1234567_SB1", **SIGNED
    )

    params = header_params(header)

    assert header.startswith('OAuth realm="1234567_SB1", ')
    assert params["oauth_signature"] == hmac_sha256(QUERY_BASE_STRING)
    assert params["oauth_signature_method"] == "HMAC-SHA256"
    assert params["oauth_token"] == "tk"
    assert params["oauth_consumer_key"] == "ck"
    assert params["oauth_version"] == "1.0"


def test_default_port_and_host_case_do_not_change_signature():
    plain = header_params(build_authorization_header("PATCH", "https://erp.test/x", **SIGNED))
    noisy = header_params(build_authorization_header("PATCH", "https://ERP.test:443/x", **SIGNED))

    assert plain["oauth_signature"] == noisy["oauth_signature"]


def test_realm_is_optional():
    header = build_authorization_header("GET", "https://erp.test/x", **SIGNED)

    assert "realm=" not in header


def test_signature_depends_on_method():
    get = build_authorization_header("GET", "https://erp.test/x", **SIGNED)
    patch = build_authorization_header("PATCH", "https://erp.test/x", **SIGNED)

    assert header_params(get)["oauth_signature"] != header_params(patch)["oauth_signature"]


def test_fresh_nonce_per_request():
    kwargs = dict(consumer_key="ck", consumer_secret="cs", token_id="tk", token_secret="ts")

    first = header_params(build_authorization_header("GET", "https://erp.test/x", **kwargs))
    second = header_params(build_authorization_header("GET", "https://erp.test/x", **kwargs))

    assert first["oauth_nonce"] != second["oauth_nonce"]
