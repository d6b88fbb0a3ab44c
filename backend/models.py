from sqlalchemy import Column, String, Text, Date, DateTime, DECIMAL, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from database import Base
import uuid
from datetime import datetime, timezone

DEFAULT_COLOR = "#C7CEEA"
DEFAULT_ICON = "📌"
DEFAULT_PAYMENT_METHOD = "cash"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False)
    color = Column(String(7), nullable=False, default=DEFAULT_COLOR)
    icon = Column(String(16), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        Index("idx_expense_date", "expense_date"),
        Index("idx_category_id", "category_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    amount = Column(DECIMAL(10, 2), nullable=False)   # Never use float for money
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False)
    description = Column(Text, nullable=True)
    expense_date = Column(Date, nullable=False)
    payment_method = Column(String(50), nullable=False, default=DEFAULT_PAYMENT_METHOD)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # No backref: deleting a Category never rewrites expenses.category_id.
    category = relationship(Category, lazy="joined")
