# GlossApp: Database Models
# Import all models here for SQLAlchemy discovery

from glossapp.models.type_config import CarTypeConfig, WashTypeConfig   # noqa
from glossapp.models.pricing import PricingEntry                        # noqa
from glossapp.models.vehicle import Vehicle                             # noqa
from glossapp.models.washer import Washer                               # noqa
from glossapp.models.company import Company, Discount                   # noqa
from glossapp.models.wash_record import WashRecord                      # noqa
