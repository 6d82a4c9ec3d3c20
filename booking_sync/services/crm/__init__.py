from booking_sync.services.crm.client import CrmClient
from booking_sync.services.crm.mappers import CrmMapper

__all__ = ["CrmClient", "CrmMapper"]
