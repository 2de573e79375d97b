from datetime import date

from backoffice.schemas.common import CamelModel


class DateRangeOut(CamelModel):
    start_date: date | None = None
    end_date: date | None = None


class DashboardStatsOut(CamelModel):
    customers: int
    orders: int
    products: int
    categories: int
    admin_users: int
    date_range: DateRangeOut


class UploadOut(CamelModel):
    url: str
    file_name: str
