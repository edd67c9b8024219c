"""Registration request payloads"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .user import AccountKind


class CustomerRegistration(BaseModel):
    """Body of ``POST /clientes``"""
    nome: str = Field(min_length=1)
    email: str = Field(min_length=3)
    senha: str = Field(min_length=1)
    telefone: Optional[str] = None
    cpf: Optional[str] = None

    @property
    def account_kind(self) -> AccountKind:
        return AccountKind.CUSTOMER

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class BusinessRegistration(BaseModel):
    """Body of ``POST /estabelecimentos``.

    ``categoria`` is the human-readable category name chosen in the form;
    the session resolves it to ``tipo_id`` before sending.
    """
    nome: str = Field(min_length=1)
    email: str = Field(min_length=3)
    senha: str = Field(min_length=1)
    telefone: Optional[str] = None
    cnpj: str = Field(min_length=1)
    endereco: str = Field(min_length=1)
    descricao: Optional[str] = None
    categoria: Optional[str] = None

    @property
    def account_kind(self) -> AccountKind:
        return AccountKind.BUSINESS

    def to_payload(self, tipo_id: int) -> Dict[str, Any]:
        payload = self.model_dump(exclude_none=True)
        payload["tipo_id"] = tipo_id
        return payload
