from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FilterStateModel(BaseModel):
    driver: Optional[str] = None
    receiver: Optional[str] = None
    date: Optional[str] = Field(default=None, description="Canonical YYYY-MM-DD date")


class MetaListResponse(BaseModel):
    values: List[Any]


class SourceInfoResponse(BaseModel):
    rows: int
    loaded_at: Optional[str] = None
    download_url: Optional[str] = None


class ViewResponse(BaseModel):
    filters: FilterStateModel
    count: int
    summary: str
    rows: List[Dict[str, str]]
