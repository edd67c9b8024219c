"""Tests for the MeetPoint API client request contract"""

import pytest
import requests

from meetpoint.api.errors import (
    MSG_ALREADY_REGISTERED,
    MSG_BAD_CREDENTIALS,
    MSG_CNPJ_TAKEN,
    MSG_CONNECTION_ERROR,
    MSG_CPF_TAKEN,
    MSG_EMAIL_TAKEN,
    MSG_INVALID_DATA,
    MSG_NOT_FOUND,
    MSG_SERVER_ERROR,
    MSG_UNEXPECTED_ERROR,
)
from meetpoint.utils.cancellation import CancelToken
from meetpoint.utils.exceptions import ApiError, RequestCancelledError

from conftest import BASE_URL, last_call, make_response


class TestRequest:

    def test_resolves_url_against_base(self, client, http):
        client.request("/tipos")
        call = last_call(http)
        assert call["url"] == f"{BASE_URL}/tipos"
        assert call["method"] == "GET"

    def test_sends_json_content_type_without_token(self, client, http):
        client.request("/tipos")
        headers = last_call(http)["headers"]
        assert headers["Content-Type"] == "application/json"
        assert "Authorization" not in headers

    def test_attaches_bearer_token_read_from_store(self, client, http, token_store):
        token_store.set_token("abc123")
        client.request("/estabelecimentos")
        assert last_call(http)["headers"]["Authorization"] == "Bearer abc123"

        # Read on every call, not cached
        token_store.set_token("rotated")
        client.request("/estabelecimentos")
        assert last_call(http)["headers"]["Authorization"] == "Bearer rotated"

    def test_passes_body_as_json(self, client, http):
        client.request("/avaliacoes", "post", {"nota": 5})
        call = last_call(http)
        assert call["method"] == "POST"
        assert call["json"] == {"nota": 5}

    def test_returns_decoded_json(self, client, http):
        http.request.return_value = make_response(200, [{"id": 1, "nome": "Bar"}])
        assert client.request("/tipos") == [{"id": 1, "nome": "Bar"}]

    def test_empty_success_body_returns_none(self, client, http):
        http.request.return_value = make_response(204, reason="No Content")
        assert client.request("/avaliacoes/1", "DELETE") is None

    def test_non_json_success_body_returns_none(self, client, http):
        http.request.return_value = make_response(200, text="ok")
        assert client.request("/ping") is None

    def test_does_not_retry(self, client, http):
        http.request.return_value = make_response(500, {"message": "boom"}, reason="Internal Server Error")
        with pytest.raises(ApiError):
            client.request("/tipos")
        assert http.request.call_count == 1


class TestErrorMapping:

    @pytest.mark.parametrize(
        "server_message, expected",
        [
            ("Email already exists", MSG_EMAIL_TAKEN),
            ("CPF existente", MSG_CPF_TAKEN),
            ("cnpj duplicado", MSG_CNPJ_TAKEN),
            ("duplicate key", MSG_ALREADY_REGISTERED),
        ],
    )
    def test_conflict_messages_by_field(self, client, http, server_message, expected):
        http.request.return_value = make_response(409, {"message": server_message}, reason="Conflict")
        with pytest.raises(ApiError) as exc_info:
            client.request("/clientes", "POST", {})
        assert exc_info.value.status == 409
        assert exc_info.value.message == expected

    def test_conflict_reads_error_field_too(self, client, http):
        http.request.return_value = make_response(409, {"error": "EMAIL_TAKEN"}, reason="Conflict")
        with pytest.raises(ApiError) as exc_info:
            client.request("/clientes", "POST", {})
        assert exc_info.value.message == MSG_EMAIL_TAKEN

    def test_conflict_with_plain_text_body(self, client, http):
        http.request.return_value = make_response(409, text="CPF already used", reason="Conflict")
        with pytest.raises(ApiError) as exc_info:
            client.request("/clientes", "POST", {})
        assert exc_info.value.message == MSG_CPF_TAKEN

    def test_bad_request_keeps_server_message(self, client, http):
        http.request.return_value = make_response(400, {"message": "Senha muito curta"}, reason="Bad Request")
        with pytest.raises(ApiError) as exc_info:
            client.request("/clientes", "POST", {})
        assert exc_info.value.message == "Senha muito curta"
        assert exc_info.value.details == {"message": "Senha muito curta"}

    def test_bad_request_without_message_uses_generic(self, client, http):
        http.request.return_value = make_response(400, reason="Bad Request")
        with pytest.raises(ApiError) as exc_info:
            client.request("/clientes", "POST", {})
        assert exc_info.value.message == MSG_INVALID_DATA

    def test_unauthorized(self, client, http):
        http.request.return_value = make_response(401, {"message": "invalid"}, reason="Unauthorized")
        with pytest.raises(ApiError) as exc_info:
            client.request("/clientes/login", "POST", {})
        assert exc_info.value.message == MSG_BAD_CREDENTIALS

    def test_not_found(self, client, http):
        http.request.return_value = make_response(404, text="Cannot GET /x", reason="Not Found")
        with pytest.raises(ApiError) as exc_info:
            client.request("/x")
        assert exc_info.value.message == MSG_NOT_FOUND

    def test_server_error_with_empty_body(self, client, http):
        http.request.return_value = make_response(500, reason="Internal Server Error")
        with pytest.raises(ApiError) as exc_info:
            client.request("/tipos")
        assert exc_info.value.status == 500
        assert exc_info.value.message == MSG_SERVER_ERROR

    def test_server_error_hides_details(self, client, http):
        http.request.return_value = make_response(503, {"message": "db pool exhausted"}, reason="Service Unavailable")
        with pytest.raises(ApiError) as exc_info:
            client.request("/tipos")
        assert exc_info.value.message == MSG_SERVER_ERROR

    def test_unmapped_status_keeps_server_message(self, client, http):
        http.request.return_value = make_response(403, {"message": "Acesso negado"}, reason="Forbidden")
        with pytest.raises(ApiError) as exc_info:
            client.request("/tipos")
        assert exc_info.value.message == "Acesso negado"

    def test_unmapped_status_without_body(self, client, http):
        http.request.return_value = make_response(403, reason="Forbidden")
        with pytest.raises(ApiError) as exc_info:
            client.request("/tipos")
        assert exc_info.value.message == "HTTP 403: Forbidden"

    @pytest.mark.parametrize(
        "exc",
        [
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.Timeout("slow"),
        ],
    )
    def test_network_failure_is_status_zero(self, client, http, exc):
        http.request.side_effect = exc
        with pytest.raises(ApiError) as exc_info:
            client.request("/tipos")
        assert exc_info.value.status == 0
        assert exc_info.value.message == MSG_CONNECTION_ERROR

    @pytest.mark.parametrize(
        "exc",
        [
            requests.exceptions.InvalidJSONError("body is not serializable"),
            requests.exceptions.InvalidURL("no host"),
            requests.exceptions.TooManyRedirects("loop"),
        ],
    )
    def test_local_request_failure_is_not_reported_as_offline(self, client, http, exc):
        http.request.side_effect = exc
        with pytest.raises(ApiError) as exc_info:
            client.request("/tipos", "POST", {"x": 1})
        assert exc_info.value.status == 0
        assert exc_info.value.message == MSG_UNEXPECTED_ERROR


class TestCancellation:

    def test_cancelled_before_send_issues_no_request(self, client, http):
        token = CancelToken()
        token.cancel("screen closed")
        with pytest.raises(RequestCancelledError):
            client.request("/tipos", cancel_token=token)
        http.request.assert_not_called()

    def test_cancelled_during_flight_discards_response(self, client, http, token_store):
        token = CancelToken()

        def respond(**kwargs):
            token.cancel()
            return make_response(200, {"cliente": {"id": "1"}, "token": "t-1"})

        http.request.side_effect = respond
        with pytest.raises(RequestCancelledError):
            client.login_cliente("a@b.com", "pw", cancel_token=token)
        assert token_store.get_token() is None


class TestEndpoints:

    def test_login_cliente_stores_token(self, client, http, token_store):
        http.request.return_value = make_response(200, {"cliente": {"id": "1"}, "token": "tok"})
        response = client.login_cliente("ana@example.com", "segredo")
        call = last_call(http)
        assert call["url"] == f"{BASE_URL}/clientes/login"
        assert call["json"] == {"email": "ana@example.com", "senha": "segredo"}
        assert response["cliente"]["id"] == "1"
        assert token_store.get_token() == "tok"

    def test_login_estabelecimento_endpoint(self, client, http):
        http.request.return_value = make_response(200, {"estabelecimento": {"id": "9"}, "token": "tok"})
        client.login_estabelecimento("dono@example.com", "segredo")
        assert last_call(http)["url"] == f"{BASE_URL}/estabelecimentos/login"

    def test_response_without_token_leaves_store_alone(self, client, http, token_store):
        token_store.set_token("old")
        http.request.return_value = make_response(200, {"cliente": {"id": "1"}})
        client.register_cliente({"nome": "Ana"})
        assert token_store.get_token() == "old"

    def test_logout_clears_token(self, client, token_store):
        token_store.set_token("tok")
        client.logout()
        assert client.get_token() is None

    def test_establishment_filters(self, client, http):
        http.request.return_value = make_response(200, [])
        client.get_estabelecimentos(search="pizza", tipo="Restaurante", page=2, limit=10)
        assert last_call(http)["params"] == {"search": "pizza", "tipo": "Restaurante", "page": 2, "limit": 10}

    def test_all_categories_filter_is_omitted(self, client, http):
        http.request.return_value = make_response(200, [])
        client.get_estabelecimentos(tipo="Todos")
        assert last_call(http)["params"] is None

    def test_establishments_are_normalized(self, client, http):
        http.request.return_value = make_response(
            200,
            [{"id": 1, "nome": "Café Central"}, {"id": 2, "name": "Old Diner", "averageRating": 4.5}],
        )
        establishments = client.get_estabelecimentos()
        assert [e.name for e in establishments] == ["Café Central", "Old Diner"]
        assert establishments[1].average_rating == 4.5

    def test_ratings_for_establishment(self, client, http):
        http.request.return_value = make_response(200, [{"id": 3, "nota": 4, "comentario": "Bom"}])
        ratings = client.get_avaliacoes_by_estabelecimento("7")
        assert last_call(http)["url"] == f"{BASE_URL}/estabelecimentos/7/avaliacoes"
        assert ratings[0].rating == 4
        assert ratings[0].comment == "Bom"

    def test_create_avaliacao_body(self, client, http):
        http.request.return_value = make_response(201, {"id": 10, "nota": 5})
        rating = client.create_avaliacao("7", "1", 5, "Ótimo")
        assert last_call(http)["json"] == {
            "estabelecimento_id": "7",
            "cliente_id": "1",
            "nota": 5,
            "comentario": "Ótimo",
        }
        assert rating.id == "10"

    @pytest.mark.parametrize("score", [0, 6, 3.5, True])
    def test_create_avaliacao_rejects_bad_score(self, client, http, score):
        with pytest.raises(ValueError):
            client.create_avaliacao("7", "1", score)
        http.request.assert_not_called()

    def test_delete_avaliacao(self, client, http):
        http.request.return_value = make_response(204, reason="No Content")
        assert client.delete_avaliacao("10") is None
        assert last_call(http)["method"] == "DELETE"

    def test_get_tipos(self, client, http):
        http.request.return_value = make_response(200, [{"id": 2, "nome": "Bar", "descricao": "Bebidas"}])
        tipos = client.get_tipos()
        assert tipos[0].id == 2
        assert tipos[0].name == "Bar"
        assert tipos[0].description == "Bebidas"
