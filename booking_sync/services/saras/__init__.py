from booking_sync.services.saras.client import SarasClient
from booking_sync.services.saras.http import SarasHttpClient

__all__ = ["SarasClient", "SarasHttpClient"]
