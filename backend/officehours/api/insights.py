"""Insights API: list available insights, compute one for a course, pin insights to the dashboard."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from officehours.auth_utils import get_course_role, get_current_user
from officehours.config import settings
from officehours.database import get_db
from officehours.models.user import User
from officehours.schemas import (
    InsightMetadataResponse,
    InsightToggleRequest,
    InsightValueResponse,
)
from officehours.services.error_logger import log_error
from officehours.services.insights import (
    Filter,
    InsightForbiddenError,
    InsightNotFoundError,
    compute_insight,
    get_insight,
    list_insights,
)
from officehours.services.insights.filters import COURSE_ID, TIMEFRAME

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


@router.get("", response_model=dict[str, InsightMetadataResponse])
async def list_all_insights(
    current_user: User = Depends(get_current_user),
):
    """Metadata for every insight, keyed by name. Nothing is computed."""
    return list_insights()


@router.get("/{course_id}/{insight_name}", response_model=InsightValueResponse)
@limiter.limit(settings.insights_rate_limit)
async def get_insight_value(
    request: Request,
    course_id: int,
    insight_name: str,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Compute one insight over the course, optionally within [start, end)."""
    try:
        role = await get_course_role(db, current_user.id, course_id)

        filters = [Filter(type=COURSE_ID, courseId=course_id)]
        if start is not None and end is not None:
            filters.append(Filter(type=TIMEFRAME, start=start, end=end))

        try:
            output = await compute_insight(db, insight_name, role, filters)
        except InsightNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except InsightForbiddenError as e:
            raise HTTPException(status_code=403, detail=str(e))

        return {**get_insight(insight_name).metadata(), "output": output.payload()}
    except HTTPException:
        raise
    except Exception as e:
        await log_error(
            e, db=db, module="api.insights", function_name="get_insight_value",
            course_id=course_id, insight_name=insight_name,
        )
        raise


@router.patch("")
async def toggle_insight_on(
    data: InsightToggleRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Pin an insight to the caller's dashboard."""
    try:
        try:
            get_insight(data.insight_name)
        except InsightNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

        pinned = list(current_user.insights or [])
        if data.insight_name not in pinned:
            pinned.append(data.insight_name)
            current_user.insights = pinned
            await db.commit()
        return {"insights": pinned}
    except HTTPException:
        raise
    except Exception as e:
        await log_error(
            e, db=db, module="api.insights", function_name="toggle_insight_on",
            insight_name=data.insight_name,
        )
        raise


@router.delete("")
async def toggle_insight_off(
    data: InsightToggleRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unpin an insight from the caller's dashboard."""
    try:
        pinned = [name for name in (current_user.insights or []) if name != data.insight_name]
        if pinned != (current_user.insights or []):
            current_user.insights = pinned
            await db.commit()
        return {"insights": pinned}
    except HTTPException:
        raise
    except Exception as e:
        await log_error(
            e, db=db, module="api.insights", function_name="toggle_insight_off",
            insight_name=data.insight_name,
        )
        raise
