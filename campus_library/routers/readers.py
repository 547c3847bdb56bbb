from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from campus_library.models.principal import Admin, Reader
from campus_library.schemas.engagement import PointHistoryOut, ReaderDashboard
from campus_library.schemas.principal import ReaderOut, ReaderUpdate
from campus_library.security.principal import require_admin, require_reader
from campus_library.services.point_service import PointService, get_point_service
from campus_library.services.reader_admin_service import ReaderAdminService, get_reader_admin_service

router = APIRouter(prefix="/readers", tags=["readers"])


@router.get("/me/dashboard", response_model=ReaderDashboard)
def read_dashboard(
    reader: Reader = Depends(require_reader),
    service: ReaderAdminService = Depends(get_reader_admin_service),
) -> ReaderDashboard:
    """Points, open requests, books on loan and reading stats for the signed-in reader."""
    return service.dashboard(reader)


@router.get("/me/points", response_model=list[PointHistoryOut])
def read_point_history(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    reader: Reader = Depends(require_reader),
    points: PointService = Depends(get_point_service),
) -> list[PointHistoryOut]:
    return [PointHistoryOut.model_validate(entry) for entry in points.history_for(reader, limit=limit)]


@router.get("", response_model=list[ReaderOut])
def list_readers(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    admin: Admin = Depends(require_admin),
    service: ReaderAdminService = Depends(get_reader_admin_service),
) -> list[ReaderOut]:
    return service.list_readers(skip=skip, limit=limit, search=search)


@router.get("/{reader_id}", response_model=ReaderOut)
def get_reader(
    reader_id: str,
    admin: Admin = Depends(require_admin),
    service: ReaderAdminService = Depends(get_reader_admin_service),
) -> ReaderOut:
    return service.get_reader_by_id(reader_id)


@router.patch("/{reader_id}", response_model=ReaderOut)
def update_reader(
    reader_id: str,
    payload: ReaderUpdate,
    admin: Admin = Depends(require_admin),
    service: ReaderAdminService = Depends(get_reader_admin_service),
) -> ReaderOut:
    return service.update_reader(reader_id, payload)


@router.delete("/{reader_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_reader(
    reader_id: str,
    admin: Admin = Depends(require_admin),
    service: ReaderAdminService = Depends(get_reader_admin_service),
) -> Response:
    service.delete_reader(reader_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
