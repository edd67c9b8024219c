"""MeetPoint REST API client"""

from typing import Any, Dict, List, Optional

import requests

from ..models.establishment import Category, Establishment, Rating
from ..models.normalize import (
    category_from_raw,
    establishment_from_raw,
    many,
    rating_from_raw,
)
from ..utils.cancellation import CancelToken, check_cancelled
from ..utils.config import DEFAULT_API_URL
from ..utils.exceptions import ApiError
from ..utils.logger import get_logger
from .errors import MSG_CONNECTION_ERROR, MSG_UNEXPECTED_ERROR, extract_error, message_for_status
from .token_store import MemoryTokenStore, TokenStore

logger = get_logger(__name__)

ALL_CATEGORIES = "Todos"


class MeetPointClient:
    """Single choke point for all HTTP traffic to the MeetPoint backend"""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        token_store: Optional[TokenStore] = None,
        connection_timeout: int = 10,
        read_timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store or MemoryTokenStore()
        # Tuple timeout: (connect_timeout, read_timeout)
        self.timeout = (connection_timeout, read_timeout)
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings, token_store: Optional[TokenStore] = None) -> "MeetPointClient":
        return cls(
            base_url=settings.api.base_url,
            token_store=token_store,
            connection_timeout=settings.api.connection_timeout,
            read_timeout=settings.api.read_timeout,
        )

    # ------------------------------------------------------------------
    # Token handling
    # ------------------------------------------------------------------

    def get_token(self) -> Optional[str]:
        return self.token_store.get_token()

    def set_token(self, token: str) -> None:
        self.token_store.set_token(token)

    def clear_token(self) -> None:
        self.token_store.clear_token()

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Any:
        """
        Make an HTTP request to the MeetPoint API

        Args:
            endpoint: Path relative to the base URL (e.g. "/clientes/login")
            method: HTTP method
            body: JSON-serializable request body
            params: Query parameters
            cancel_token: Abandons the call before sending or discards its response

        Returns:
            Decoded JSON body, or None for an empty/non-JSON success body

        Raises:
            ApiError: On any non-2xx response or transport failure
            RequestCancelledError: If cancel_token fired
        """
        check_cancelled(cancel_token)

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        method = method.upper()

        logger.debug("Sending API request", method=method, endpoint=endpoint)
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._build_headers(),
                params=params,
                json=body,
                timeout=self.timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.error("API unreachable", method=method, endpoint=endpoint, error=str(e))
            check_cancelled(cancel_token)
            raise ApiError(0, MSG_CONNECTION_ERROR)
        except requests.exceptions.RequestException as e:
            # Never reached the wire: bad URL, unserializable body, redirect loop
            logger.error("API request failed", method=method, endpoint=endpoint, error=str(e))
            check_cancelled(cancel_token)
            raise ApiError(0, MSG_UNEXPECTED_ERROR)

        check_cancelled(cancel_token)

        logger.info(
            "Received API response",
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
        )

        if not response.ok:
            server_message, details = extract_error(response)
            message = message_for_status(response.status_code, server_message, response.reason or "")
            logger.warning(
                "API returned an error",
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
                server_message=server_message,
            )
            raise ApiError(response.status_code, message, details)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("API success response was not JSON", method=method, endpoint=endpoint)
            return None

    # ------------------------------------------------------------------
    # Auth endpoints
    # ------------------------------------------------------------------

    def _store_token_from(self, response: Any) -> None:
        if isinstance(response, dict) and response.get("token"):
            self.set_token(response["token"])

    def login_cliente(self, email: str, password: str, cancel_token: Optional[CancelToken] = None) -> Dict[str, Any]:
        response = self.request(
            "/clientes/login", "POST", {"email": email, "senha": password}, cancel_token=cancel_token
        )
        self._store_token_from(response)
        return response or {}

    def login_estabelecimento(
        self, email: str, password: str, cancel_token: Optional[CancelToken] = None
    ) -> Dict[str, Any]:
        response = self.request(
            "/estabelecimentos/login", "POST", {"email": email, "senha": password}, cancel_token=cancel_token
        )
        self._store_token_from(response)
        return response or {}

    def register_cliente(self, payload: Dict[str, Any], cancel_token: Optional[CancelToken] = None) -> Dict[str, Any]:
        response = self.request("/clientes", "POST", payload, cancel_token=cancel_token)
        self._store_token_from(response)
        return response or {}

    def register_estabelecimento(
        self, payload: Dict[str, Any], cancel_token: Optional[CancelToken] = None
    ) -> Dict[str, Any]:
        logger.info("Registering establishment", tipo_id=payload.get("tipo_id"))
        response = self.request("/estabelecimentos", "POST", payload, cancel_token=cancel_token)
        self._store_token_from(response)
        return response or {}

    def logout(self) -> None:
        """The backend keeps no server-side session; dropping the token logs out"""
        self.clear_token()

    # ------------------------------------------------------------------
    # Establishments
    # ------------------------------------------------------------------

    def get_estabelecimentos(
        self,
        search: Optional[str] = None,
        tipo: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> List[Establishment]:
        params: Dict[str, Any] = {}
        if search:
            params["search"] = search
        if tipo and tipo != ALL_CATEGORIES:
            params["tipo"] = tipo
        if page:
            params["page"] = page
        if limit:
            params["limit"] = limit
        raw = self.request("/estabelecimentos", params=params or None, cancel_token=cancel_token)
        return many(establishment_from_raw, raw)

    def get_estabelecimento(self, establishment_id: str, cancel_token: Optional[CancelToken] = None) -> Establishment:
        return establishment_from_raw(self.request(f"/estabelecimentos/{establishment_id}", cancel_token=cancel_token))

    def update_estabelecimento(self, establishment_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(f"/estabelecimentos/{establishment_id}", "PUT", data) or {}

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    def get_avaliacoes_by_estabelecimento(
        self, establishment_id: str, cancel_token: Optional[CancelToken] = None
    ) -> List[Rating]:
        raw = self.request(f"/estabelecimentos/{establishment_id}/avaliacoes", cancel_token=cancel_token)
        return many(rating_from_raw, raw)

    def get_avaliacoes_by_cliente(self, cliente_id: str, cancel_token: Optional[CancelToken] = None) -> List[Rating]:
        raw = self.request(f"/clientes/{cliente_id}/avaliacoes", cancel_token=cancel_token)
        return many(rating_from_raw, raw)

    @staticmethod
    def _validate_score(nota: int) -> None:
        if not isinstance(nota, int) or isinstance(nota, bool) or not 1 <= nota <= 5:
            raise ValueError(f"Rating must be an integer from 1 to 5, got {nota!r}")

    def create_avaliacao(
        self,
        estabelecimento_id: str,
        cliente_id: str,
        nota: int,
        comentario: Optional[str] = None,
    ) -> Rating:
        self._validate_score(nota)
        body: Dict[str, Any] = {
            "estabelecimento_id": estabelecimento_id,
            "cliente_id": cliente_id,
            "nota": nota,
        }
        if comentario:
            body["comentario"] = comentario
        return rating_from_raw(self.request("/avaliacoes", "POST", body))

    def update_avaliacao(self, avaliacao_id: str, nota: int, comentario: Optional[str] = None) -> Rating:
        self._validate_score(nota)
        body: Dict[str, Any] = {"nota": nota}
        if comentario is not None:
            body["comentario"] = comentario
        return rating_from_raw(self.request(f"/avaliacoes/{avaliacao_id}", "PUT", body))

    def delete_avaliacao(self, avaliacao_id: str) -> None:
        self.request(f"/avaliacoes/{avaliacao_id}", "DELETE")

    # ------------------------------------------------------------------
    # Customer profiles
    # ------------------------------------------------------------------

    def get_cliente(self, cliente_id: str) -> Dict[str, Any]:
        return self.request(f"/clientes/{cliente_id}") or {}

    def update_cliente(self, cliente_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(f"/clientes/{cliente_id}", "PUT", data) or {}

    # ------------------------------------------------------------------
    # Categories (tipos)
    # ------------------------------------------------------------------

    def get_tipos(self, cancel_token: Optional[CancelToken] = None) -> List[Category]:
        return many(category_from_raw, self.request("/tipos", cancel_token=cancel_token))

    def get_tipo(self, tipo_id: str) -> Category:
        return category_from_raw(self.request(f"/tipos/{tipo_id}"))

    # ------------------------------------------------------------------
    # Comments, highlights and menu items (raw pass-through)
    # ------------------------------------------------------------------

    def get_comentarios(self) -> List[Any]:
        return self.request("/comentarios") or []

    def create_comentario(self, avaliacao_id: str, cliente_id: str, texto: str) -> Any:
        return self.request(
            "/comentarios",
            "POST",
            {"avaliacao_id": avaliacao_id, "cliente_id": cliente_id, "texto": texto},
        )

    def get_destaques(self) -> List[Any]:
        return self.request("/destaques") or []

    def create_destaque(
        self,
        estabelecimento_id: str,
        titulo: str,
        descricao: str,
        data_inicio: str,
        data_fim: str,
    ) -> Any:
        return self.request(
            "/destaques",
            "POST",
            {
                "estabelecimento_id": estabelecimento_id,
                "titulo": titulo,
                "descricao": descricao,
                "data_inicio": data_inicio,
                "data_fim": data_fim,
            },
        )

    def get_items(self) -> List[Any]:
        return self.request("/items") or []

    def create_item(
        self,
        estabelecimento_id: str,
        nome: str,
        preco: float,
        categoria: str,
        descricao: Optional[str] = None,
    ) -> Any:
        body: Dict[str, Any] = {
            "estabelecimento_id": estabelecimento_id,
            "nome": nome,
            "preco": preco,
            "categoria": categoria,
        }
        if descricao:
            body["descricao"] = descricao
        return self.request("/items", "POST", body)
