"""
Guildhall Shared Module

Provides domain-level foundations for all game modules:
- Domain exceptions
- Base service and repository patterns
- Gameplay constants

Usage
-----
    from guildhall.modules.shared import (
        BaseService,
        BaseRepository,
        InsufficientResourcesError,
    )
"""

from __future__ import annotations

from .base_repository import BaseRepository
from .base_service import BaseService
from .exceptions import (
    AlreadyActiveError,
    AlreadyInGuildError,
    AuthError,
    CooldownActiveError,
    GuildhallDomainException,
    GuildMaxClassError,
    GuildNameTakenError,
    GuildRequirementsUnmetError,
    InsufficientResourcesError,
    InvalidCategoryError,
    InvalidTemplateError,
    InvalidTierError,
    NoActiveTaskError,
    NoGatherableItemsError,
    NotFinishedError,
    NotFoundError,
    NotGuildLeaderError,
    NotInGuildError,
    PreconditionError,
    RankTooLowError,
    RecipeNotFoundError,
    SkillTooLowError,
    StateConflictError,
    ValidationError,
)

__all__ = [
    # Base patterns
    "BaseService",
    "BaseRepository",
    # Exceptions
    "GuildhallDomainException",
    "ValidationError",
    "RecipeNotFoundError",
    "InvalidCategoryError",
    "InvalidTierError",
    "InvalidTemplateError",
    "StateConflictError",
    "AlreadyActiveError",
    "NotFinishedError",
    "NoActiveTaskError",
    "AlreadyInGuildError",
    "GuildNameTakenError",
    "GuildMaxClassError",
    "NotInGuildError",
    "PreconditionError",
    "SkillTooLowError",
    "RankTooLowError",
    "InsufficientResourcesError",
    "CooldownActiveError",
    "NotGuildLeaderError",
    "GuildRequirementsUnmetError",
    "NotFoundError",
    "NoGatherableItemsError",
    "AuthError",
]
