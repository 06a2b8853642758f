from dataclasses import dataclass

from src.idp_claims.core.storage import PropertyStore


@dataclass
class ApplicationDependencies:
    property_store: PropertyStore
