"""ORM table declarations; importing this package registers every table on ``db``."""

from . import (  # noqa: F401
    assets,
    attendance,
    billing,
    leave,
    notifications,
    organization,
    payroll,
    saas,
    tenants,
    users,
    workflow,
    year_end,
)
