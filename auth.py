"""
Authentication gateway over Supabase Auth.
Email/password sign-in and sign-up, plus federated (Google) sign-in
completed through the OAuth redirect back to the app.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

import httpx
from supabase import AuthError as SupabaseAuthError
from supabase import Client

from errors import AuthError, AuthErrorKind

logger = logging.getLogger(__name__)

AUTH_ERRORS = (SupabaseAuthError, httpx.HTTPError)

FLOW_PARAM = "flow"
PENDING_TTL_SECONDS = 600

INVALID_CREDENTIALS_CODES = {"invalid_credentials", "invalid_grant", "user_not_found"}
PROVIDER_DISABLED_CODES = {"email_provider_disabled", "provider_disabled", "signup_disabled", "oauth_provider_not_supported"}
DOMAIN_CODES = {"bad_oauth_callback", "redirect_uri_mismatch", "unauthorized_domain"}

MESSAGES = {
    AuthErrorKind.INVALID_CREDENTIALS: "Wrong email or password.",
    AuthErrorKind.PROVIDER_DISABLED: "This sign-in method is disabled. Enable it in the Supabase dashboard.",
    AuthErrorKind.DOMAIN_NOT_AUTHORIZED: "This domain is not authorized for sign-in. Add it to the redirect URLs in the Supabase dashboard.",
    AuthErrorKind.POPUP_DISMISSED: "Sign-in was cancelled.",
}


@dataclass(frozen=True)
class Session:
    user_id: str
    email: Optional[str]
    display_name: str


# flow id -> (client holding the PKCE verifier, started at)
_pending: Dict[str, Tuple[Client, float]] = {}
_pending_lock = threading.Lock()


def _display_name(user: Any) -> str:
    email = getattr(user, "email", None)
    meta = getattr(user, "user_metadata", None) or {}
    name = None
    if isinstance(meta, dict):
        name = meta.get("full_name") or meta.get("name")
    if name:
        return str(name)
    return email.split("@")[0] if email else "there"


def session_from_response(response: Any) -> Session:
    user = response.user
    return Session(user_id=str(user.id), email=getattr(user, "email", None), display_name=_display_name(user))


def _kind_for(code: str, message: str) -> AuthErrorKind:
    text = message.lower()
    if code in INVALID_CREDENTIALS_CODES or "invalid login credentials" in text:
        return AuthErrorKind.INVALID_CREDENTIALS
    if code in PROVIDER_DISABLED_CODES or "not enabled" in text or "disabled" in text:
        return AuthErrorKind.PROVIDER_DISABLED
    if code in DOMAIN_CODES or "redirect" in text or "unauthorized domain" in text:
        return AuthErrorKind.DOMAIN_NOT_AUTHORIZED
    if code == "access_denied":
        return AuthErrorKind.POPUP_DISMISSED
    return AuthErrorKind.OTHER


def classify_auth_error(exc: BaseException) -> AuthError:
    """Map a Supabase/transport exception onto an AuthError."""
    code = str(getattr(exc, "code", None) or "").lower()
    message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
    kind = _kind_for(code, message)
    return AuthError(kind, MESSAGES.get(kind, message))


def classify_callback_error(error: str, description: str = "", error_code: str = "") -> AuthError:
    """Classify the ?error=... parameters the provider redirects back with."""
    codes = {(error or "").lower(), (error_code or "").lower()}
    if "access_denied" in codes:
        kind = AuthErrorKind.POPUP_DISMISSED
    else:
        kind = _kind_for((error_code or error or "").lower(), description or "")
    return AuthError(kind, MESSAGES.get(kind, description or error))


def sign_in_with_password(client: Client, email: str, password: str) -> Session:
    try:
        response = client.auth.sign_in_with_password({"email": email, "password": password})
    except AUTH_ERRORS as e:
        logger.info("Password sign-in failed for %s: %s", email, e)
        raise classify_auth_error(e) from e
    logger.info("Signed in %s", response.user.id)
    return session_from_response(response)


def sign_up(client: Client, email: str, password: str) -> Optional[Session]:
    """
    Register a new email/password account.

    Returns:
        Session when the account is usable right away, None when the
        provider wants the address confirmed first
    """
    try:
        response = client.auth.sign_up({"email": email, "password": password})
    except AUTH_ERRORS as e:
        logger.info("Sign-up failed for %s: %s", email, e)
        raise classify_auth_error(e) from e
    if response.user is None or response.session is None:
        return None
    return session_from_response(response)


def _prune_pending(now: float) -> None:
    for flow_id in [k for k, (_, started) in _pending.items() if now - started > PENDING_TTL_SECONDS]:
        del _pending[flow_id]


def start_federated_sign_in(client: Client, provider_id: str, redirect_to: str) -> str:
    """
    Begin an OAuth sign-in and return the provider URL to open.

    The client is parked under a flow id carried in the redirect URL so
    the callback can exchange the code with the same PKCE verifier.
    """
    flow_id = secrets.token_urlsafe(16)
    try:
        response = client.auth.sign_in_with_oauth({
            "provider": provider_id,
            "options": {"redirect_to": f"{redirect_to}/?{urlencode({FLOW_PARAM: flow_id})}"},
        })
    except AUTH_ERRORS as e:
        raise classify_auth_error(e) from e

    now = time.monotonic()
    with _pending_lock:
        _prune_pending(now)
        _pending[flow_id] = (client, now)
    return response.url


def sign_in_with_federated_provider(params: Mapping[str, str]) -> Optional[Tuple[Session, Client]]:
    """
    Complete an OAuth sign-in from the callback query parameters.

    Returns:
        (Session, client) after a successful exchange, None when the
        parameters are not an OAuth callback

    Raises:
        AuthError: popup-dismissed when the user cancelled at the provider
    """
    if params.get("error"):
        raise classify_callback_error(
            params.get("error", ""),
            params.get("error_description", ""),
            params.get("error_code", ""),
        )
    code = params.get("code")
    if not code:
        return None

    with _pending_lock:
        _prune_pending(time.monotonic())
        pending = _pending.pop(params.get(FLOW_PARAM, ""), None)
    if pending is None:
        raise AuthError(AuthErrorKind.OTHER, "This sign-in link has expired. Please try again.")

    client = pending[0]
    try:
        response = client.auth.exchange_code_for_session({"auth_code": code})
    except AUTH_ERRORS as e:
        logger.info("OAuth code exchange failed: %s", e)
        raise classify_auth_error(e) from e
    logger.info("Signed in %s via OAuth", response.user.id)
    return session_from_response(response), client


def sign_out(client: Client) -> None:
    try:
        client.auth.sign_out()
    except AUTH_ERRORS as e:
        # local session is dropped regardless
        logger.warning("Sign-out request failed: %s", e)
