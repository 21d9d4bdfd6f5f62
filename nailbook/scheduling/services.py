from typing import Dict, Union

from nailbook.models.booking import ServiceType

# How many consecutive grid slots each service occupies
REQUIRED_SLOT_COUNTS: Dict[ServiceType, int] = {
    ServiceType.manicure: 1,
    ServiceType.pedicure: 1,
    ServiceType.mani_pedi: 2,
    ServiceType.home_service_2slots: 2,
    ServiceType.home_service_3slots: 3,
}


def required_slot_count(service_type: Union[ServiceType, str]) -> int:
    return REQUIRED_SLOT_COUNTS[ServiceType(service_type)]
