# apiapp/schemas/employee.py
from datetime import datetime

from pydantic import BaseModel, Field


class EmployeeCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    # 僅用於建立帳號的輸入，不會在輸出 schema 中出現
    password: str = Field(..., min_length=1)
    role: str = "Employee"


class EmployeeRead(BaseModel):
    id: int
    username: str
    role: str
    created_at: datetime

    class Config:
        # Pydantic v2：允許從 ORM 物件轉模型
        from_attributes = True
