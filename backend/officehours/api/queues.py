"""Queue API: read a queue with its questions, list open questions, edit the queue notes."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from officehours.auth_utils import get_current_user, require_course_role
from officehours.database import get_db
from officehours.models.course import STAFF_ROLES
from officehours.models.question import OPEN_STATUSES, Question
from officehours.models.queue import Queue
from officehours.models.user import User
from officehours.schemas import QuestionResponse, QueueNotesUpdate, QueueResponse
from officehours.services.error_logger import log_error

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "photo_url": user.photo_url}


def _question_to_response(question: Question) -> dict:
    return {
        "id": question.id,
        "queue_id": question.queue_id,
        "text": question.text,
        "question_type": question.question_type.value if question.question_type else None,
        "status": question.status,
        "group_able": question.group_able,
        "location": question.location,
        "creator": _user_summary(question.creator),
        "ta_helped": _user_summary(question.ta_helped),
        "created_at": question.created_at,
        "first_helped_at": question.first_helped_at,
        "helped_at": question.helped_at,
        "closed_at": question.closed_at,
    }


async def _get_queue_or_404(db: AsyncSession, queue_id: int) -> Queue:
    result = await db.execute(select(Queue).where(Queue.id == queue_id))
    queue = result.scalar_one_or_none()
    if queue is None:
        raise HTTPException(status_code=404, detail="Queue not found")
    return queue


async def _queue_questions(db: AsyncSession, queue_id: int, *, open_only: bool) -> list[Question]:
    query = select(Question).where(Question.queue_id == queue_id)
    if open_only:
        query = query.where(Question.status.in_(OPEN_STATUSES))
    result = await db.execute(
        query
        .options(selectinload(Question.creator), selectinload(Question.ta_helped))
        .order_by(Question.created_at)
    )
    return list(result.scalars().all())


@router.get("/{queue_id}", response_model=QueueResponse)
async def get_queue(
    queue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The queue with all of its questions; queueSize counts only open ones."""
    try:
        queue = await _get_queue_or_404(db, queue_id)
        questions = await _queue_questions(db, queue_id, open_only=False)
        return {
            "id": queue.id,
            "course_id": queue.course_id,
            "room": queue.room,
            "notes": queue.notes,
            "allow_questions": queue.allow_questions,
            "is_professor_queue": queue.is_professor_queue,
            "queue_size": sum(1 for q in questions if q.status in OPEN_STATUSES),
            "questions": [_question_to_response(q) for q in questions],
        }
    except HTTPException:
        raise
    except Exception as e:
        await log_error(e, db=db, module="api.queues", function_name="get_queue")
        raise


@router.get("/{queue_id}/questions", response_model=list[QuestionResponse])
async def list_queue_questions(
    queue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Open questions in the queue, oldest first."""
    try:
        await _get_queue_or_404(db, queue_id)
        return [_question_to_response(q) for q in await _queue_questions(db, queue_id, open_only=True)]
    except HTTPException:
        raise
    except Exception as e:
        await log_error(e, db=db, module="api.queues", function_name="list_queue_questions")
        raise


@router.patch("/{queue_id}", response_model=QueueResponse)
async def update_queue_notes(
    queue_id: int,
    data: QueueNotesUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the queue notes. Course staff only."""
    try:
        queue = await _get_queue_or_404(db, queue_id)
        await require_course_role(db, current_user, queue.course_id, *STAFF_ROLES)

        queue.notes = data.notes
        await db.commit()
        logger.info("User %s updated notes on queue %s", current_user.id, queue_id)
        return {
            "id": queue.id,
            "course_id": queue.course_id,
            "room": queue.room,
            "notes": queue.notes,
            "allow_questions": queue.allow_questions,
            "is_professor_queue": queue.is_professor_queue,
        }
    except HTTPException:
        raise
    except Exception as e:
        await log_error(e, db=db, module="api.queues", function_name="update_queue_notes")
        raise
