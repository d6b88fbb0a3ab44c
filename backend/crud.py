from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from models import Category, Expense, DEFAULT_COLOR, DEFAULT_ICON, utcnow
from schemas import CategoryCreate, ExpenseCreate, ExpenseUpdate
from errors import CategoryInUseError, DuplicateCategoryError, InvalidCategoryError, NotFoundError
from datetime import date
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)

STARTER_CATEGORIES = [
    ("Food", "#FF6B6B", "🍜"),
    ("Transport", "#4ECDC4", "🚗"),
    ("Shopping", "#FFD93D", "🛍️"),
    ("Entertainment", "#95E1D3", "🎬"),
    ("Utilities", "#F38181", "💡"),
    ("Health", "#AA96DA", "💊"),
    ("Education", "#6BCB77", "📚"),
    ("Other", DEFAULT_COLOR, DEFAULT_ICON),
]


# ── Categories ────────────────────────────────────────────────────────────────

def seed_categories(db: Session) -> int:
    """Insert the starter categories if the table is empty. Returns how many were added."""
    if db.query(Category.id).first() is not None:
        return 0
    for name, color, icon in STARTER_CATEGORIES:
        db.add(Category(id=str(uuid.uuid4()), name=name, color=color, icon=icon))
    db.commit()
    logger.info("Seeded %d starter categories", len(STARTER_CATEGORIES))
    return len(STARTER_CATEGORIES)


def list_categories(db: Session) -> list[Category]:
    return db.query(Category).order_by(Category.name).all()


def get_category(db: Session, category_id: str) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def create_category(db: Session, category_in: CategoryCreate) -> Category:
    """
    Create a category. The unique constraint on `name` decides duplicates, so two
    concurrent creates with the same name cannot both succeed.
    """
    name = category_in.name.strip()
    category = Category(
        id=str(uuid.uuid4()),
        name=name,
        color=category_in.color or DEFAULT_COLOR,
        icon=(category_in.icon or "").strip() or DEFAULT_ICON,
    )
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Rejected duplicate category name %r", name)
        raise DuplicateCategoryError(name)
    db.refresh(category)
    logger.info("Created category %s (%s)", category.id, category.name)
    return category


def delete_category(db: Session, category_id: str) -> None:
    """Remove a category. Fails while any expense still references it."""
    category = get_category(db, category_id)
    db.delete(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Rejected removal of category %s: still referenced", category_id)
        raise CategoryInUseError(category_id)
    logger.info("Deleted category %s", category_id)


# ── Expenses ──────────────────────────────────────────────────────────────────

def _require_category(db: Session, category_id: str) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        logger.warning("Rejected expense for unknown category %s", category_id)
        raise InvalidCategoryError(category_id)
    return category


def get_expense(db: Session, expense_id: str) -> Expense:
    expense = db.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense", expense_id)
    return expense


def get_expenses(
    db: Session,
    category_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_desc: bool = True,
) -> list[Expense]:
    """
    Fetch expenses with optional category and inclusive date-range filters, sorted by date.
    sort_desc=True means newest first.
    """
    query = db.query(Expense)

    if category_id:
        query = query.filter(Expense.category_id == category_id.strip())
    if start_date:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date:
        query = query.filter(Expense.expense_date <= end_date)

    if sort_desc:
        query = query.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
    else:
        query = query.order_by(Expense.expense_date.asc(), Expense.created_at.asc())

    return query.all()


def create_expense(db: Session, expense_in: ExpenseCreate) -> Expense:
    category = _require_category(db, expense_in.category_id)

    new_expense = Expense(
        id=str(uuid.uuid4()),
        amount=expense_in.amount,
        category_id=expense_in.category_id,
        description=expense_in.description,
        expense_date=expense_in.expense_date,
        payment_method=expense_in.payment_method,
        category=category,
    )
    db.add(new_expense)
    db.commit()
    db.refresh(new_expense)
    logger.info("Created expense %s (%s on %s)", new_expense.id, new_expense.amount, new_expense.expense_date)
    return new_expense


def update_expense(db: Session, expense_id: str, expense_in: ExpenseUpdate) -> Expense:
    """Replace every editable field of an existing expense and stamp updated_at."""
    expense = get_expense(db, expense_id)
    category = _require_category(db, expense_in.category_id)

    expense.amount = expense_in.amount
    expense.category_id = expense_in.category_id
    expense.category = category
    expense.description = expense_in.description
    expense.expense_date = expense_in.expense_date
    expense.payment_method = expense_in.payment_method
    expense.updated_at = utcnow()

    db.commit()
    db.refresh(expense)
    logger.info("Updated expense %s", expense.id)
    return expense


def delete_expense(db: Session, expense_id: str) -> None:
    expense = get_expense(db, expense_id)
    db.delete(expense)
    db.commit()
    logger.info("Deleted expense %s", expense_id)
