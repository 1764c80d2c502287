"""
Unified response envelope.

    {
      "ok": true,
      "code": 200,
      "message": "Operation completed successfully",
      "data": {...}          # single object
      "items": [...],        # or a list
      "count": 42,           # list length / total elements when paginated
      "totals": "Page 1 of 5"
    }

Fields left as None are omitted from the serialized body.
"""

from typing import Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.responses import Response

T = TypeVar("T")


class GenericResponse(BaseModel, Generic[T]):
    ok: bool
    code: int
    message: str | None = None
    data: T | None = None
    items: list[T] | None = None
    count: int | None = None
    totals: str | None = None

    # --- Factories ---
    @classmethod
    def success(cls, code: int, message: str | None, data: T | None = None) -> "GenericResponse[T]":
        return cls(ok=True, code=code, message=message, data=data)

    @classmethod
    def success_list(cls, code: int, message: str | None, items: list[T] | None) -> "GenericResponse[T]":
        items = list(items) if items is not None else []
        return cls(ok=True, code=code, message=message, items=items, count=len(items))

    @classmethod
    def success_paginated(
        cls,
        code: int,
        message: str | None,
        items: list[T],
        count: int,
        totals: str | None,
    ) -> "GenericResponse[T]":
        return cls(ok=True, code=code, message=message, items=list(items), count=count, totals=totals)

    @classmethod
    def error(cls, code: int, message: str | None) -> "GenericResponse[T]":
        return cls(ok=False, code=code, message=message)

    # --- Serialization ---
    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def to_response(self, headers: dict[str, str] | None = None) -> Response:
        """
        Render as an HTTP response whose status is `code`.

        204 responses carry no body, as HTTP requires.
        """
        if self.code == 204:
            return Response(status_code=204, headers=headers)
        return JSONResponse(status_code=self.code, content=self.to_body(), headers=headers)


__all__ = ["GenericResponse"]
