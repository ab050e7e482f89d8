"""Receipt numbering for member payments"""
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.payment import Payment

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for payment bookkeeping"""

    @staticmethod
    def generate_receipt_number(db: Session, when: Optional[datetime] = None) -> str:
        """Generate sequential receipt number"""
        # Format: REC-YYYY-XXXXX (e.g., REC-2024-00001)
        year = (when or datetime.utcnow()).year
        prefix = f"REC-{year}-"

        # length first so REC-YYYY-100000 sorts above REC-YYYY-99999
        last_payment = db.query(Payment)\
            .filter(Payment.receipt_number.like(f"{prefix}%"))\
            .order_by(func.length(Payment.receipt_number).desc(), Payment.receipt_number.desc())\
            .first()

        if last_payment:
            new_number = int(last_payment.receipt_number.split('-')[-1]) + 1
        else:
            new_number = 1

        return f"{prefix}{new_number:05d}"
