"""Central registry for SQLAlchemy models with string-based relationships.

Importing this module loads every ORM class referenced by string (``"Cleaner"``,
``"CleanerPayment"``) so mappers configure even when one model module is
imported on its own.
"""

from app.domain.bookings import db_models as booking_db_models  # noqa: F401
from app.domain.cleaners import db_models as cleaner_db_models  # noqa: F401
from app.domain.cleaner_pay import db_models as cleaner_pay_db_models  # noqa: F401
from app.domain.pricing import db_models as pricing_db_models  # noqa: F401
