"""
App Proxy Signature Verification

Verifies the HMAC-SHA256 credential the storefront platform attaches to
proxied requests. The signer covers every query parameter except the
credential itself, so the message has to be rebuilt from the query string
exactly the way the platform builds it.

Two producer variants exist and they are not interchangeable:

- ``signature`` (legacy app proxy): segments ``key=value`` are sorted as
  whole strings and concatenated with no delimiter.
- ``hmac``: segments are sorted by key and joined with ``&``.

The verifier is a pure function of its inputs. It never raises and never
mutates the query parameters; every outcome is returned as a
VerificationResult.
"""

import hashlib
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

# A bare string is accepted as a single value
QueryParameters = Mapping[str, Union[str, List[str]]]

SIGNATURE_KEY = "signature"
HMAC_KEY = "hmac"


class CanonicalForm(str, Enum):
    """Canonical message layout, selected by the credential key"""

    SIGNATURE = "signature"
    HMAC = "hmac"


class RejectReason(str, Enum):
    """Machine-readable reasons a request is rejected"""

    MISSING_SECRET = "missing_secret"
    MISSING_SIGNATURE = "missing_signature"
    LENGTH_MISMATCH = "length_mismatch"
    INVALID_SIGNATURE = "invalid_signature"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a single verification pass"""

    accepted: bool
    reason: Optional[RejectReason] = None
    form: Optional[CanonicalForm] = None

    @classmethod
    def accept(cls, form: CanonicalForm) -> "VerificationResult":
        return cls(accepted=True, form=form)

    @classmethod
    def reject(
        cls, reason: RejectReason, form: Optional[CanonicalForm] = None
    ) -> "VerificationResult":
        return cls(accepted=False, reason=reason, form=form)


def group_query_items(items: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    """
    Group raw ``(key, value)`` pairs into QueryParameters.

    Keys keep their first-seen order and repeated keys keep their values in
    the order they appeared in the query string.
    """
    grouped: Dict[str, List[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)
    return grouped


def _as_values(values: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(values, str):
        return [values]
    return list(values)


def _render_segment(key: str, values: List[str]) -> str:
    return f"{key}={','.join(values)}"


def canonicalize(
    params: QueryParameters,
    exclude: Iterable[str],
    form: CanonicalForm,
) -> str:
    """
    Build the canonical message for ``params``.

    Args:
        params: Query parameters, one or more values per key
        exclude: Keys left out of the message (the credential key)
        form: Canonical layout to produce

    Returns:
        The exact string the signer fed to HMAC-SHA256

    Values are not escaped: a literal ``=`` or ``&`` inside a value is kept
    as-is, mirroring the signer.
    """
    excluded = set(exclude)
    remaining = {
        key: _as_values(values)
        for key, values in params.items()
        if key not in excluded
    }

    if form is CanonicalForm.SIGNATURE:
        return "".join(
            sorted(_render_segment(key, values) for key, values in remaining.items())
        )

    return "&".join(
        _render_segment(key, remaining[key]) for key in sorted(remaining)
    )


def compute_hmac_hex(secret: bytes, message: str) -> str:
    """HMAC-SHA256 of ``message`` (UTF-8) as 64 lowercase hex characters"""
    return hmac.new(
        secret, message.encode("utf-8", "surrogatepass"), hashlib.sha256
    ).hexdigest()


def _credential_value(params: QueryParameters, key: str) -> Optional[str]:
    """First value of ``key``, ``""`` when the key has no values, None if absent"""
    if key not in params:
        return None
    values = _as_values(params[key])
    return values[0] if values else ""


class SignatureVerifier:
    """
    Verifies app proxy credentials against a shared secret.

    The secret is fixed at construction; instances hold no other state and
    can be shared across concurrent requests.
    """

    def __init__(self, secret: Optional[bytes]):
        self._secret = secret or None

    def verify(self, params: QueryParameters) -> VerificationResult:
        """
        Verify the credential carried in ``params``.

        ``signature`` takes priority over ``hmac`` whenever the key is present,
        even with an empty value, and only the key that was used is excluded
        from the canonical message.
        """
        if self._secret is None:
            return VerificationResult.reject(RejectReason.MISSING_SECRET)

        provided = _credential_value(params, SIGNATURE_KEY)
        if provided is not None:
            form, credential_key = CanonicalForm.SIGNATURE, SIGNATURE_KEY
        else:
            provided = _credential_value(params, HMAC_KEY)
            if provided is None:
                return VerificationResult.reject(RejectReason.MISSING_SIGNATURE)
            form, credential_key = CanonicalForm.HMAC, HMAC_KEY

        message = canonicalize(params, exclude=(credential_key,), form=form)
        expected = compute_hmac_hex(self._secret, message).encode("ascii")
        candidate = provided.encode("utf-8", "surrogatepass")

        # Digest length is public, so the early exit leaks nothing.
        if len(candidate) != len(expected):
            return VerificationResult.reject(RejectReason.LENGTH_MISMATCH, form)

        if not hmac.compare_digest(expected, candidate):
            return VerificationResult.reject(RejectReason.INVALID_SIGNATURE, form)

        return VerificationResult.accept(form)
