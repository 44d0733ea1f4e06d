from canonforge.storage.interfaces import (
    CatalogStorageInterface,
    CodexStorageInterface,
    FactStorageInterface,
    RelationshipStorageInterface,
)
from canonforge.storage.memory import (
    InMemoryCatalogStorage,
    InMemoryCodexStorage,
    InMemoryFactStorage,
    InMemoryRelationshipStorage,
)

__all__ = [
    "CatalogStorageInterface",
    "CodexStorageInterface",
    "FactStorageInterface",
    "RelationshipStorageInterface",
    "InMemoryCatalogStorage",
    "InMemoryCodexStorage",
    "InMemoryFactStorage",
    "InMemoryRelationshipStorage",
]
