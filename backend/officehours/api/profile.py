"""Profile API: the signed-in user with their enrollments and pinned insights."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehours.auth_utils import get_current_user
from officehours.database import get_db
from officehours.models.course import Course, UserCourse
from officehours.models.user import User
from officehours.schemas import ProfileResponse
from officehours.services.error_logger import log_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        result = await db.execute(
            select(UserCourse.course_id, Course.name, UserCourse.role)
            .join(Course, Course.id == UserCourse.course_id)
            .where(UserCourse.user_id == current_user.id, Course.enabled.is_(True))
            .order_by(Course.name)
        )
        courses = [
            {"course_id": row.course_id, "course_name": row.name, "role": row.role.value}
            for row in result.all()
        ]
        return {
            "id": current_user.id,
            "email": current_user.email,
            "first_name": current_user.first_name,
            "last_name": current_user.last_name,
            "name": current_user.name,
            "photo_url": current_user.photo_url,
            "courses": courses,
            "insights": current_user.insights or [],
        }
    except HTTPException:
        raise
    except Exception as e:
        await log_error(e, db=db, module="api.profile", function_name="get_profile")
        raise
