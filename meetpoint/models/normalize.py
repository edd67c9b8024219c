"""
Adapters from raw backend JSON to typed models.

The backend has served two naming conventions for the same entities
(Portuguese keys such as ``nome``/``nota`` and legacy English keys such
as ``name``/``rating``). Each adapter lists, per field, the keys to try in
order and the default to use when none is populated. Adapters never raise
on missing optional fields.
"""

from typing import Any, Iterable, List, Mapping

from ..utils.exceptions import InvalidResponseError
from .establishment import Category, Establishment, Rating
from .user import AccountKind, User

DEFAULT_ESTABLISHMENT_NAME = "Estabelecimento"
DEFAULT_CATEGORY = "Estabelecimento"
DEFAULT_ADDRESS = "Endereço não informado"
DEFAULT_DATE = "Não informado"
DEFAULT_IMAGE_URL = (
    "https://images.pexels.com/photos/1855214/pexels-photo-1855214.jpeg"
    "?auto=compress&cs=tinysrgb&w=800"
)

_MISSING = object()


def _populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def pick(raw: Any, *keys: str, default: Any = None) -> Any:
    """Return the first populated value among ``keys``, else ``default``"""
    if not isinstance(raw, Mapping):
        return default
    for key in keys:
        value = raw.get(key, _MISSING)
        if value is not _MISSING and _populated(value):
            return value
    return default


def _as_str(value: Any, default: str = "") -> str:
    if not _populated(value):
        return default
    return str(value)


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def establishment_from_raw(raw: Any) -> Establishment:
    category = pick(raw, "tipo", "categoria", "category", default="")
    if isinstance(category, Mapping):
        # Some endpoints embed the whole tipo row
        category = pick(category, "nome", "name", default="")

    return Establishment(
        id=_as_str(pick(raw, "id", "_id")),
        name=_as_str(pick(raw, "nome", "name"), DEFAULT_ESTABLISHMENT_NAME),
        address=_as_str(pick(raw, "endereco", "address"), DEFAULT_ADDRESS),
        category=_as_str(category, DEFAULT_CATEGORY),
        average_rating=_as_float(pick(raw, "media_avaliacoes", "averageRating", default=0)),
        num_ratings=_as_int(pick(raw, "total_avaliacoes", "numRatings", default=0)),
        image_url=_as_str(pick(raw, "imagem_url", "imageUrl"), DEFAULT_IMAGE_URL),
        description=_as_str(pick(raw, "descricao", "description")) or None,
        owner_id=_as_str(pick(raw, "dono_id", "ownerId")) or None,
    )


def rating_from_raw(raw: Any) -> Rating:
    return Rating(
        id=_as_str(pick(raw, "id", "_id")),
        establishment_id=_as_str(pick(raw, "estabelecimento_id", "establishmentId")),
        user_id=_as_str(pick(raw, "cliente_id", "userId")),
        rating=_as_int(pick(raw, "nota", "rating", default=0)),
        comment=_as_str(pick(raw, "comentario", "comment")),
        date=_as_str(pick(raw, "data", "created_at", "date"), DEFAULT_DATE),
    )


def category_from_raw(raw: Any) -> Category:
    return Category(
        id=_as_int(pick(raw, "id", default=0)),
        name=_as_str(pick(raw, "nome", "name")),
        description=_as_str(pick(raw, "descricao", "description")) or None,
    )


def user_from_raw(raw: Any, account_kind: AccountKind, fallback_name: str = "") -> User:
    """Project a ``cliente``/``estabelecimento`` record into a session user.

    For business accounts the establishment record is the account, so its
    id doubles as ``business_id``.

    A business record without any id cannot be tied to an establishment
    and raises InvalidResponseError.
    """
    user_id = _as_str(pick(raw, "id", "_id"))
    business_id = None
    if account_kind == AccountKind.BUSINESS:
        business_id = _as_str(pick(raw, "estabelecimento_id", "businessId"), user_id) or None
        if business_id is None:
            raise InvalidResponseError("Establishment record has no id")

    return User(
        id=user_id,
        name=_as_str(pick(raw, "nome", "name"), fallback_name),
        email=_as_str(pick(raw, "email")),
        avatar=_as_str(pick(raw, "avatar", "foto", "foto_url")) or None,
        account_kind=account_kind,
        business_id=business_id,
    )


def many(adapter, raw: Any) -> List:
    """Apply an adapter over a JSON array; anything else is an empty list.

    Accepts ``{"data": [...]}`` envelopes as well as bare arrays.
    """
    if isinstance(raw, Mapping):
        raw = raw.get("data")
    if not isinstance(raw, Iterable) or isinstance(raw, (str, bytes)):
        return []
    return [adapter(item) for item in raw if isinstance(item, Mapping)]

