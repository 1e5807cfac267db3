"""
SQLAlchemy ORM models for the recruitment kernel.

Importing this package registers every table on ``Base.metadata``.
"""

from recruitment_kernel.models.background_check import BackgroundCheckModel
from recruitment_kernel.models.observation import ObservationModel
from recruitment_kernel.models.recommendation import RecommendationModel
from recruitment_kernel.models.replica import MirrorClaimModel, ReplicaRefModel

__all__ = [
    "BackgroundCheckModel",
    "MirrorClaimModel",
    "ObservationModel",
    "RecommendationModel",
    "ReplicaRefModel",
]
