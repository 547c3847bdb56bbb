from __future__ import annotations

from fastapi import APIRouter, Depends

from campus_library.schemas.engagement import PointRuleOut
from campus_library.services.point_service import PointService, get_point_service

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/rules", response_model=list[PointRuleOut])
def list_point_rules(service: PointService = Depends(get_point_service)) -> list[PointRuleOut]:
    """How many points each activity is worth."""
    return [PointRuleOut.model_validate(rule) for rule in service.list_rules()]
