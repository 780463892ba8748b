# rentfleet — Database Models
# Import all models here for SQLAlchemy discovery

from rentfleet.models.vehicle import Vehicle                # noqa
from rentfleet.models.customer import Customer              # noqa
from rentfleet.models.staff_member import StaffMember       # noqa
from rentfleet.models.booking import Booking                # noqa
from rentfleet.models.service_record import ServiceRecord   # noqa
