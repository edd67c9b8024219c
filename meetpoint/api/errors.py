"""User-facing messages for backend failures (pt-BR, as deployed)"""

from typing import Any, Optional, Tuple

import requests

MSG_INVALID_DATA = "Dados inválidos. Verifique as informações e tente novamente."
MSG_BAD_CREDENTIALS = "Email ou senha incorretos."
MSG_NOT_FOUND = "Recurso não encontrado."
MSG_EMAIL_TAKEN = "Este email já está cadastrado. Tente fazer login ou use outro email."
MSG_CPF_TAKEN = "Este CPF já está cadastrado. Verifique os dados ou tente fazer login."
MSG_CNPJ_TAKEN = "Este CNPJ já está cadastrado. Verifique os dados ou tente fazer login."
MSG_ALREADY_REGISTERED = "Dados já cadastrados no sistema. Verifique as informações."
MSG_SERVER_ERROR = "Erro interno do servidor. Tente novamente mais tarde."
MSG_CONNECTION_ERROR = "Erro de conexão. Verifique sua internet e tente novamente."
MSG_UNEXPECTED_ERROR = "Erro inesperado. Tente novamente."


def extract_error(response: requests.Response) -> Tuple[Optional[str], Optional[Any]]:
    """
    Pull the server-supplied message out of an error response.

    Tries a JSON body (``message`` then ``error``), then plain text.
    Never raises; an empty or unusable body gives ``(None, None)``.

    Returns:
        (message or None, parsed JSON body or None)
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if data is not None:
        message = None
        if isinstance(data, dict):
            message = data.get("message") or data.get("error")
        if not isinstance(message, str) or not message.strip():
            message = None
        return message, data

    try:
        text = response.text.strip()
    except Exception:
        text = ""
    return (text or None), None


def message_for_status(status: int, server_message: Optional[str] = None, reason: str = "") -> str:
    """Map an HTTP status plus the server's message to the message shown to users"""
    if status == 409:
        lowered = (server_message or "").lower()
        if "email" in lowered:
            return MSG_EMAIL_TAKEN
        if "cpf" in lowered:
            return MSG_CPF_TAKEN
        if "cnpj" in lowered:
            return MSG_CNPJ_TAKEN
        return MSG_ALREADY_REGISTERED
    if status == 400:
        return server_message or MSG_INVALID_DATA
    if status == 401:
        return MSG_BAD_CREDENTIALS
    if status == 404:
        return MSG_NOT_FOUND
    if status >= 500:
        return MSG_SERVER_ERROR
    return server_message or f"HTTP {status}: {reason}".rstrip(": ")
