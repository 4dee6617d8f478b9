from dataclasses import dataclass
from typing import Annotated, Literal, Optional

from fastapi import Path, Query
from pydantic import ValidationError

MIN_YEAR = 1900
MAX_YEAR = 2100
MIN_LIMIT = 1
MAX_LIMIT = 100

SortOrder = Literal["asc", "desc"]

IdParam = Annotated[int, Path(ge=1, description="Positive integer id")]
YearParam = Annotated[int, Path(ge=MIN_YEAR, le=MAX_YEAR, description="Calendar year")]


@dataclass
class MenuQueryParams:
    sort: SortOrder = "desc"
    limit: Optional[int] = None
    offset: int = 0
    year: Optional[int] = None

    def as_dict(self) -> dict:
        return {"sort": self.sort, "limit": self.limit, "offset": self.offset, "year": self.year}


def menu_query_params(
    sort: SortOrder = Query("desc"),
    limit: Optional[int] = Query(None, ge=MIN_LIMIT, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    year: Optional[int] = Query(None, ge=MIN_YEAR, le=MAX_YEAR),
) -> MenuQueryParams:
    return MenuQueryParams(sort=sort, limit=limit, offset=offset, year=year)


def validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value").removeprefix("Value error, ")
        messages.append(f"{field}: {message}" if field else message)
    return messages
