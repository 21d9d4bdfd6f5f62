from typing import List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper: used by admin list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Error responses: scheduling errors add their own detail fields
class ErrorResponse(BaseModel):
    error: str
    message: str


class ChainGapError(ErrorResponse):
    time: str
    slot_id: str
    status: str


class ReservationRaceLostError(ErrorResponse):
    slot_ids: List[str]
