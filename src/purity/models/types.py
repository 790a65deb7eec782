"""Pydantic models for the stats API.

Field names follow the JSON wire format used by the front-end.
"""

from pydantic import BaseModel


class SubmitResponse(BaseModel):
    """Response for a recorded submission."""

    message: str
    totalSubmissions: int
    averageScore: str
    questionStats: dict[str, str]  # "1".."100" -> percentage


class StatsResponse(BaseModel):
    """Global stats.

    With no submissions averageScore is 0 and questionStats is empty.
    """

    totalSubmissions: int
    averageScore: str | int
    questionStats: dict[str, str]


class ErrorResponse(BaseModel):
    """Error payload for 4xx/5xx responses."""

    error: str
