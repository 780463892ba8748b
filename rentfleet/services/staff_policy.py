"""Which staff positions may perform which lifecycle-affecting actions."""

import enum

from rentfleet.errors import PositionNotAllowedError
from rentfleet.models.enums import StaffPosition


class StaffAction(str, enum.Enum):
    CREATE_BOOKING = "create a booking"
    CREATE_SERVICE = "register a service"


FORBIDDEN_POSITIONS = {
    StaffAction.CREATE_BOOKING: {StaffPosition.TECHNICIAN},
    StaffAction.CREATE_SERVICE: {StaffPosition.SALES_REPRESENTATIVE},
}


def ensure_position_allowed(staff, action: StaffAction):
    if staff.position in FORBIDDEN_POSITIONS.get(action, set()):
        raise PositionNotAllowedError(
            f"Staff member {staff.id} ({staff.position.value}) is not allowed to {action.value}"
        )
