from __future__ import annotations

from typing import Union

from pydantic import BaseModel

Number = Union[int, float]


class CounterTotal(BaseModel):
    total: Number


class CounterMutation(BaseModel):
    """Response for a POST against the counter."""

    message: str
    total: Number
