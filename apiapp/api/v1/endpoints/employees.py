# apiapp/api/v1/endpoints/employees.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apiapp.core.deps import get_auth_repository, require_admin
from apiapp.core.security import hash_password
from apiapp.db.session import get_db
from apiapp.models.employee import Employee
from apiapp.repositories.sql import SqlAuthRepository
from apiapp.schemas.employee import EmployeeCreate, EmployeeRead

router = APIRouter(tags=["employees"])


# === 建立帳號（需要 Administrative 政策） ===
@router.post("/", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    repository: SqlAuthRepository = Depends(get_auth_repository),
    _: Employee = Depends(require_admin),
):
    if await repository.retrieve(payload.username):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists",
        )

    # 建立新帳號（雜湊密碼）
    employee = Employee(
        username=payload.username,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    return await repository.create(employee)


@router.get("/", response_model=List[EmployeeRead])
async def list_employees(
    db: AsyncSession = Depends(get_db),
    _: Employee = Depends(require_admin),
):
    result = await db.execute(select(Employee).order_by(Employee.id))
    return result.scalars().all()
