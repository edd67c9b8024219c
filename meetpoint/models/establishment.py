"""Read-only payloads served by the backend"""

from typing import Optional

from pydantic import BaseModel


class Establishment(BaseModel):
    """Reviewed business (restaurant, café, ...)"""
    id: str
    name: str
    address: str
    category: str = "Estabelecimento"
    average_rating: float = 0.0
    num_ratings: int = 0
    image_url: str
    description: Optional[str] = None
    owner_id: Optional[str] = None

    class Config:
        frozen = True


class Rating(BaseModel):
    """A customer's 1-5 score plus optional comment on one establishment"""
    id: str
    establishment_id: str = ""
    user_id: str = ""
    rating: int = 0
    comment: str = ""
    date: str

    class Config:
        frozen = True


class Category(BaseModel):
    """Establishment type (``tipo``) as listed by ``GET /tipos``"""
    id: int = 0
    name: str = ""
    description: Optional[str] = None

    class Config:
        frozen = True
