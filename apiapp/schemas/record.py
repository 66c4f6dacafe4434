# apiapp/schemas/record.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RecordCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class RecordUpdate(BaseModel):
    # 部分更新：未帶的欄位不動
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class RecordRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RemoveResult(BaseModel):
    deleted: List[int]
    missing: List[int]
