from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice.models.order import Order
from backoffice.models.product import Category, Product
from backoffice.models.user import AdminUser, User
from backoffice.schemas.dashboard import DashboardStatsOut, DateRangeOut


def _count_created(
    db: Session,
    model,
    start_date: date | None,
    end_date: date | None,
) -> int:
    stmt = select(func.count(model.id))
    if start_date:
        stmt = stmt.where(func.date(model.created_at) >= start_date)
    if end_date:
        # whole end day included
        stmt = stmt.where(func.date(model.created_at) <= end_date)
    return int(db.execute(stmt).scalar_one() or 0)


def get_stats(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
) -> DashboardStatsOut:
    return DashboardStatsOut(
        customers=_count_created(db, User, start_date, end_date),
        orders=_count_created(db, Order, start_date, end_date),
        products=_count_created(db, Product, start_date, end_date),
        categories=_count_created(db, Category, start_date, end_date),
        admin_users=_count_created(db, AdminUser, start_date, end_date),
        date_range=DateRangeOut(start_date=start_date, end_date=end_date),
    )
