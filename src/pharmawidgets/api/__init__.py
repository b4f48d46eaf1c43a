"""Backend access: REST client, CRUD services and catalogue search."""

from .api_client import ApiClient, ApiError, Collection
from .config import ApiConfig
from .medication_search import MedicationSearchService, map_catalogue_entry
from .services import MedicationService, ResourceService

__all__ = [
    "ApiClient",
    "ApiConfig",
    "ApiError",
    "Collection",
    "MedicationSearchService",
    "MedicationService",
    "ResourceService",
    "map_catalogue_entry",
]
