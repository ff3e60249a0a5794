"""Domain records shared by the scoring pipeline."""

from models.schemas.compensation_record import CompensationRecord
from models.schemas.profile import Profile

__all__ = [
    "CompensationRecord",
    "Profile",
]
