"""
Dead Letter Administration API

Operator endpoints to inspect dead-lettered outbox messages and put
them back into the dispatch pipeline.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from ...shared.exceptions import APIException, NotFoundError, ValidationError
from ...shared.error_codes import ErrorCode
from ...shared.middleware.trace import get_operator_id
from ...shared.responses import ErrorDetail
from ....core.outbox.dlq import DeadLetterAdministration, get_dead_letter_administration
from ....core.outbox.errors import MessageNotFoundError, OutboxValidationError
from ....core.outbox.models import DeadLetterFilter, DeadLetterPage

router = APIRouter(prefix="/api/outbox", tags=["outbox"])


class ReprocessResult(BaseModel):
    reprocessed_count: int


def _validation_error(exc: OutboxValidationError) -> APIException:
    details: List[ErrorDetail] = []
    if exc.field:
        details.append(ErrorDetail(field=exc.field, message=exc.message))
    if exc.message_id is not None:
        details.append(ErrorDetail(field="message_id", message=str(exc.message_id)))
    if exc.state:
        details.append(ErrorDetail(field="state", message=exc.state, code="invalid_state"))

    code = ErrorCode.OUTBOX_MESSAGE_NOT_DEAD_LETTERED if exc.state else ErrorCode.VALIDATION_ERROR
    return ValidationError(exc.message, details=details or None, code=code)


@router.get("/dead-letters", response_model=DeadLetterPage)
async def list_dead_letters(
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    page_size_camel: Optional[int] = Query(None, alias="pageSize"),
    admin: DeadLetterAdministration = Depends(get_dead_letter_administration)
):
    """List dead letters, most recently dead-lettered first."""
    size = page_size if page_size is not None else page_size_camel
    try:
        return await admin.list_dead_letters(page=page, page_size=size if size is not None else 20)
    except OutboxValidationError as e:
        raise _validation_error(e)


@router.get("/dead-letters/stats")
async def dead_letter_stats(
    admin: DeadLetterAdministration = Depends(get_dead_letter_administration)
) -> Dict[str, Any]:
    """Get DLQ statistics."""
    return await admin.get_stats()


@router.post("/dead-letters/reprocess", response_model=ReprocessResult)
async def reprocess_dead_letters(
    criteria: DeadLetterFilter,
    admin: DeadLetterAdministration = Depends(get_dead_letter_administration)
):
    """Reset matching dead letters (oldest first, at most max_items)."""
    try:
        count = await admin.reprocess_many(criteria, operator_id=get_operator_id())
    except OutboxValidationError as e:
        raise _validation_error(e)
    return ReprocessResult(reprocessed_count=count)


@router.post("/dead-letters/{message_id}/reprocess", status_code=204)
async def reprocess_dead_letter(
    message_id: UUID,
    admin: DeadLetterAdministration = Depends(get_dead_letter_administration)
):
    """Reset one dead letter for reprocessing."""
    try:
        await admin.reprocess(message_id, operator_id=get_operator_id())
    except MessageNotFoundError:
        raise NotFoundError("Outbox message", str(message_id))
    except OutboxValidationError as e:
        raise _validation_error(e)
    return Response(status_code=204)
