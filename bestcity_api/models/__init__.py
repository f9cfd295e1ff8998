from bestcity_api.models.base import Base
from bestcity_api.models.note import Note

__all__ = [
    "Base",
    "Note",
]
