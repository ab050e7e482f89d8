"""
Envelope, pagination and error helpers shared by the API routers
"""
import logging
import math
from typing import Any, Dict, List

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from app.config import settings

logger = logging.getLogger(__name__)


def internal_error(message: str, exc: Exception) -> HTTPException:
    """
    Log an unexpected failure and build the 500 response for it

    The raw error text is only exposed outside production.
    """
    logger.exception(f"{message}: {exc}")
    detail: Dict[str, Any] = {"message": message}
    if not settings.is_production:
        detail["error"] = str(exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def commit_or_conflict(db: Session, message: str) -> None:
    """Commit, turning a unique index violation into a 400"""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Unique constraint rejected write: {e.orig}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def paginate(query: Query, page: int, limit: int) -> Dict[str, Any]:
    """Apply offset/limit and return the items with their pagination block"""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "items": items,
        "pagination": {
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }


def dump(schema, obj) -> Dict[str, Any]:
    """Serialize an ORM object through a response schema into camelCase JSON"""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def dump_many(schema, objs) -> List[Dict[str, Any]]:
    return [dump(schema, obj) for obj in objs]


def listing(schema, page_data: Dict[str, Any]) -> Dict[str, Any]:
    data = dump_many(schema, page_data["items"])
    return {
        "success": True,
        "count": len(data),
        "pagination": page_data["pagination"],
        "data": data,
    }
