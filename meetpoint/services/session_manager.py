"""
Authentication session for one MeetPoint client.

The session holds the current user and the last error for display, and
drives the login/register/logout lifecycle through the API client:

    ANONYMOUS --login/register--> AUTHENTICATING --ok--> AUTHENTICATED
                                       |
                                       +--failure--> ANONYMOUS (last_error set)
    AUTHENTICATED --logout--> ANONYMOUS

Sessions are plain objects; create one per client (tests create many).
Login, register and logout are serialized. A login or register started
while another is in flight raises OperationInProgressError and leaves state
untouched; logout waits for the in-flight call and then clears it.
"""

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Union

from ..api.client import MeetPointClient
from ..models.normalize import pick, user_from_raw
from ..models.registration import BusinessRegistration, CustomerRegistration
from ..models.user import AccountKind, User
from ..utils.cancellation import CancelToken, check_cancelled
from ..utils.exceptions import ApiError, OperationInProgressError, RequestCancelledError
from ..utils.logger import get_logger

logger = get_logger(__name__)

LOGIN_FAILED_MESSAGE = "Erro ao fazer login. Tente novamente."
REGISTER_FAILED_MESSAGE = "Erro ao criar conta. Tente novamente."
DEFAULT_CATEGORY_ID = 1

# Fields a caller may patch locally; identity fields come only from the server
EDITABLE_USER_FIELDS = frozenset({"name", "email", "avatar"})

_RESPONSE_KEYS = {
    AccountKind.CUSTOMER: "cliente",
    AccountKind.BUSINESS: "estabelecimento",
}

Registration = Union[CustomerRegistration, BusinessRegistration]


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionManager:
    """Owns who is logged in for one API client"""

    def __init__(self, api: MeetPointClient):
        self.api = api
        self.current_user: Optional[User] = None
        self.last_error: Optional[str] = None
        self.is_loading = False
        self._in_flight = threading.Lock()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self.is_loading:
            return SessionState.AUTHENTICATING
        if self.current_user is not None:
            return SessionState.AUTHENTICATED
        return SessionState.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    @property
    def auth_token(self) -> Optional[str]:
        return self.api.get_token()

    @property
    def has_stored_credential(self) -> bool:
        """A token survived from an earlier run.

        The token is not validated against the server; it only counts once
        a login in this process succeeds, and the first 401 clears it.
        """
        return self.auth_token is not None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, operation: str, wait: bool = False) -> Iterator[None]:
        if not self._in_flight.acquire(blocking=wait):
            logger.warning("Auth operation rejected, another is in flight", operation=operation)
            raise OperationInProgressError(f"Cannot {operation} while another auth operation is running")
        self.is_loading = True
        try:
            yield
        finally:
            self.is_loading = False
            self._in_flight.release()

    def _discard_if_cancelled(self, cancel_token: Optional[CancelToken], previous_token: Optional[str]) -> None:
        """Undo the token write of a call whose caller has gone away"""
        if cancel_token is None or not cancel_token.cancelled:
            return
        if previous_token:
            self.api.set_token(previous_token)
        else:
            self.api.clear_token()
        check_cancelled(cancel_token)

    def _drop_stale_token(self, response: Any) -> None:
        """A successful answer without a token must not leave an older account's token in place"""
        if not (isinstance(response, dict) and response.get("token")):
            self.api.clear_token()

    def _fail(self, error: Exception, fallback: str) -> None:
        self.api.clear_token()
        self.current_user = None
        self.last_error = error.message if isinstance(error, ApiError) else fallback

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def login(
        self,
        email: str,
        password: str,
        account_kind: Union[AccountKind, str],
        cancel_token: Optional[CancelToken] = None,
    ) -> User:
        """Authenticate against the kind-specific endpoint.

        On failure ``last_error`` is set and the error is re-raised so the
        caller can keep its form open.
        """
        kind = AccountKind(account_kind)
        with self._exclusive("login"):
            previous_token = self.api.get_token()
            try:
                if kind == AccountKind.BUSINESS:
                    response = self.api.login_estabelecimento(email, password, cancel_token=cancel_token)
                else:
                    response = self.api.login_cliente(email, password, cancel_token=cancel_token)
                self._discard_if_cancelled(cancel_token, previous_token)
                self._drop_stale_token(response)
                user = self._user_from_response(response, kind)
            except RequestCancelledError:
                logger.info("Login cancelled", account_kind=kind.value)
                raise
            except Exception as e:
                logger.warning("Login failed", account_kind=kind.value, error=str(e))
                self._fail(e, LOGIN_FAILED_MESSAGE)
                raise

            self.current_user = user
            self.last_error = None
            logger.info("Login succeeded", account_kind=kind.value, user_id=user.id)
            return user

    def register(self, data: Registration, cancel_token: Optional[CancelToken] = None) -> User:
        """Create an account and log it in.

        Business registrations resolve the chosen category name to a
        ``tipo_id`` first; an unknown name or a failed lookup falls back to
        DEFAULT_CATEGORY_ID instead of blocking registration.
        """
        kind = data.account_kind
        with self._exclusive("register"):
            previous_token = self.api.get_token()
            try:
                if isinstance(data, BusinessRegistration):
                    tipo_id = self._resolve_category_id(data.categoria, cancel_token)
                    response = self.api.register_estabelecimento(data.to_payload(tipo_id), cancel_token=cancel_token)
                else:
                    response = self.api.register_cliente(data.to_payload(), cancel_token=cancel_token)
                self._discard_if_cancelled(cancel_token, previous_token)
                self._drop_stale_token(response)
                user = self._user_from_response(response, kind, fallback_name=data.nome)
            except RequestCancelledError:
                logger.info("Registration cancelled", account_kind=kind.value)
                raise
            except Exception as e:
                logger.warning("Registration failed", account_kind=kind.value, error=str(e))
                self._fail(e, REGISTER_FAILED_MESSAGE)
                raise

            self.current_user = user
            self.last_error = None
            logger.info("Registration succeeded", account_kind=kind.value, user_id=user.id)
            return user

    def logout(self) -> None:
        """Always ends Anonymous, whatever the API call does"""
        with self._exclusive("logout", wait=True):
            try:
                self.api.logout()
            except Exception as e:
                logger.warning("Logout call failed, clearing local session anyway", error=str(e))
            finally:
                try:
                    self.api.clear_token()
                except Exception as e:
                    logger.error("Could not remove stored token", error=str(e))
                self.current_user = None
        logger.info("Logged out")

    def update_user(self, **fields: Any) -> Optional[User]:
        """Patch the in-memory user only; see sync_profile for the server round-trip.

        No-op when nobody is logged in.
        """
        if self.current_user is None:
            return None
        unknown = set(fields) - EDITABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {', '.join(sorted(unknown))}")
        self.current_user = User(**{**self.current_user.model_dump(), **fields})
        return self.current_user

    def sync_profile(self, **fields: Any) -> Optional[User]:
        """Save profile fields on the server, then merge the server's answer.

        No-op when nobody is logged in.
        """
        user = self.current_user
        if user is None:
            return None
        unknown = set(fields) - EDITABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {', '.join(sorted(unknown))}")

        payload: Dict[str, Any] = {}
        if "name" in fields:
            payload["nome"] = fields["name"]
        if "email" in fields:
            payload["email"] = fields["email"]
        if "avatar" in fields:
            payload["avatar"] = fields["avatar"]

        if user.is_business:
            raw = self.call(self.api.update_estabelecimento, user.business_id, payload)
        else:
            raw = self.call(self.api.update_cliente, user.id, payload)

        if self.current_user is None:
            # A 401 during the call ended the session
            return None
        record = raw.get(_RESPONSE_KEYS[user.account_kind], raw) if isinstance(raw, dict) else {}
        merged = {
            "name": pick(record, "nome", "name", default=fields.get("name", user.name)),
            "email": pick(record, "email", default=fields.get("email", user.email)),
            "avatar": pick(record, "avatar", "foto", "foto_url", default=fields.get("avatar", user.avatar)),
        }
        self.current_user = User(**{**user.model_dump(), **merged})
        logger.info("Profile saved", user_id=user.id)
        return self.current_user

    def call(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run an authenticated API call; a 401 means the stored token is dead"""
        try:
            return operation(*args, **kwargs)
        except ApiError as e:
            if e.status == 401:
                logger.info("Token rejected by server, ending session")
                self.api.clear_token()
                self.current_user = None
            raise

    def clear_error(self) -> None:
        self.last_error = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_category_id(self, category_name: Optional[str], cancel_token: Optional[CancelToken]) -> int:
        if not category_name:
            return DEFAULT_CATEGORY_ID
        try:
            categories = self.api.get_tipos(cancel_token=cancel_token)
        except RequestCancelledError:
            raise
        except Exception as e:
            logger.warning("Category lookup failed, using default", category=category_name, error=str(e))
            return DEFAULT_CATEGORY_ID

        wanted = category_name.strip().lower()
        for category in categories:
            if category.name.strip().lower() == wanted and category.id:
                return category.id

        logger.info("Category not found, using default", category=category_name, default=DEFAULT_CATEGORY_ID)
        return DEFAULT_CATEGORY_ID

    @staticmethod
    def _user_from_response(response: Any, kind: AccountKind, fallback_name: str = "") -> User:
        record = response.get(_RESPONSE_KEYS[kind]) if isinstance(response, dict) else None
        if not isinstance(record, dict):
            # Some deployments answer with {"user": {...}}
            record = response.get("user") if isinstance(response, dict) else None
        return user_from_raw(record or {}, kind, fallback_name=fallback_name)
