# apiapp/api/v1/endpoints/records.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from apiapp.core.deps import get_current_user, get_record_service, require_admin
from apiapp.core.errors import EntityNotFound
from apiapp.models.employee import Employee
from apiapp.models.record import Record
from apiapp.schemas.record import RecordCreate, RecordRead, RecordUpdate, RemoveResult
from apiapp.services.records import RecordService

router = APIRouter(tags=["records"])

# BIGINT（有號 64 位元）上限
MAX_ID = 2**63 - 1


def _parse_ids(raw: str) -> List[int]:
    """ids=1,2,2,3 → [1, 2, 3]（去重、保留順序）；格式錯誤或超出範圍回 422。"""
    try:
        ids = list(dict.fromkeys(int(x) for x in raw.split(",") if x.strip()))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="ids must be a comma-separated list of integers",
        )
    if any(i < 1 or i > MAX_ID for i in ids):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"ids must be between 1 and {MAX_ID}",
        )
    if not ids:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="ids is required")
    return ids


@router.post("", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
async def create_record(
    payload: RecordCreate,
    service: RecordService = Depends(get_record_service),
    _: Employee = Depends(get_current_user),
):
    return await service.create(Record(**payload.model_dump()))


# list / search 必須在 /{record_id} 之前註冊
@router.get("/list", response_model=List[RecordRead])
async def list_records(
    offset: int = Query(0, ge=0, le=MAX_ID),
    limit: int = Query(20),
    service: RecordService = Depends(get_record_service),
    _: Employee = Depends(get_current_user),
):
    return await service.list(offset, limit)


@router.get("/search", response_model=List[RecordRead])
async def search_records(
    keyword: str = Query(...),
    service: RecordService = Depends(get_record_service),
    _: Employee = Depends(get_current_user),
):
    return await service.search(keyword)


# === 批次刪除（需要 Administrative 政策） ===
@router.delete("/remove", response_model=RemoveResult)
async def remove_records(
    ids: str = Query(...),
    service: RecordService = Depends(get_record_service),
    _: Employee = Depends(require_admin),
):
    deleted: List[int] = []
    missing: List[int] = []
    for record_id in _parse_ids(ids):
        try:
            await service.delete(record_id)
            deleted.append(record_id)
        except EntityNotFound:
            missing.append(record_id)
    return RemoveResult(deleted=deleted, missing=missing)


@router.get("/{record_id}", response_model=RecordRead)
async def retrieve_record(
    record_id: int = Path(..., ge=1, le=MAX_ID),
    service: RecordService = Depends(get_record_service),
    _: Employee = Depends(get_current_user),
):
    record = await service.retrieve(record_id)
    if record is None:
        raise EntityNotFound("Record", record_id)
    return record


@router.put("/{record_id}", response_model=RecordRead)
async def update_record(
    payload: RecordUpdate,
    record_id: int = Path(..., ge=1, le=MAX_ID),
    service: RecordService = Depends(get_record_service),
    _: Employee = Depends(get_current_user),
):
    values = payload.model_dump(exclude_unset=True)
    # name 不可為 null
    if "name" in values and values["name"] is None:
        del values["name"]
    return await service.update(record_id, values)
