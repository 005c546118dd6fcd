"""
Player-facing errors raised by the engine's services.

Every concrete error belongs to exactly one of five kinds, so a caller can
map a whole family to one response without listing every class:

- `ValidationError`: malformed or unknown input (recipe, category, tier,
  template, guild name, quantity).
- `StateConflictError`: the request collides with current state (task
  already active, not finished, nothing to claim, guild membership).
- `PreconditionError`: the request is well formed but the player does not
  qualify yet (skill, rank, resources, cooldown, guild requirements).
- `NotFoundError`: a referenced guild, shop, item or gatherable pool does
  not exist.
- `AuthError`: the caller could not be identified.

Timed refusals (`NotFinishedError`, `CooldownActiveError`) put the wait in
`details["retry_after"]`.
"""

from __future__ import annotations

from typing import Any, Optional

from guildhall.core.exceptions import GuildhallError


class GuildhallDomainException(GuildhallError):
    """Base class for errors a player can cause and correct."""


# ============================================================================
# Validation
# ============================================================================


class ValidationError(GuildhallDomainException):
    """
    Raised when user input fails domain validation.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    def __init__(
        self, field: str, message: str, error_code: Optional[str] = None
    ) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={
                "field": field,
                "validation_message": message,
            },
            error_code=error_code or f"VALIDATION_{field.upper()}",
        )


class RecipeNotFoundError(ValidationError):
    """Raised when a craft references a recipe the catalog does not have."""

    def __init__(self, recipe_id: Any) -> None:
        self.recipe_id = recipe_id
        super().__init__(
            "recipe_id", f"Recipe not found: {recipe_id}", error_code="RECIPE_NOT_FOUND"
        )


class InvalidCategoryError(ValidationError):
    """Raised when a gathering category is not one of the gatherable ones."""

    def __init__(self, category: Any) -> None:
        self.category = category
        super().__init__(
            "category", f"Invalid gathering category: {category}", error_code="INVALID_CATEGORY"
        )


class InvalidTierError(ValidationError):
    def __init__(self, tier: Any) -> None:
        self.tier = tier
        super().__init__("tier", f"Invalid tier: {tier}", error_code="INVALID_TIER")


class InvalidTemplateError(ValidationError):
    def __init__(self, template_id: Any) -> None:
        self.template_id = template_id
        super().__init__(
            "template_id", f"Invalid adventure template: {template_id}", error_code="INVALID_TEMPLATE"
        )


# ============================================================================
# State conflicts
# ============================================================================


class StateConflictError(GuildhallDomainException):
    """Raised when a request collides with the current state of the world."""


class AlreadyActiveError(StateConflictError):
    """
    Raised when a player starts a task while one of the same type is active.

    Args:
        task_type: The task type that is already running
    """

    def __init__(self, task_type: str) -> None:
        self.task_type = task_type
        super().__init__(
            f"A {task_type} task is already active",
            details={"task_type": task_type},
            error_code="TASK_ALREADY_ACTIVE",
        )


class NotFinishedError(StateConflictError):
    """
    Raised when a task is claimed before its end time.

    Args:
        task_type: The task type being claimed
        remaining_seconds: Whole seconds until the task becomes claimable
    """

    def __init__(self, task_type: str, remaining_seconds: int) -> None:
        self.task_type = task_type
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"{task_type} task not finished: {remaining_seconds}s remaining",
            details={
                "task_type": task_type,
                "remaining": remaining_seconds,
                "retry_after": remaining_seconds,
            },
            error_code="TASK_NOT_FINISHED",
        )


class NoActiveTaskError(StateConflictError):
    def __init__(self, task_type: str) -> None:
        self.task_type = task_type
        super().__init__(
            f"No active {task_type} task",
            details={"task_type": task_type},
            error_code="NO_ACTIVE_TASK",
        )


class AlreadyInGuildError(StateConflictError):
    def __init__(self, player_id: int) -> None:
        self.player_id = player_id
        super().__init__(
            "Player is already in a guild",
            details={"player_id": player_id},
            error_code="ALREADY_IN_GUILD",
        )


class GuildNameTakenError(StateConflictError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Guild name '{name}' is already taken",
            details={"name": name},
            error_code="GUILD_NAME_TAKEN",
        )


class GuildMaxClassError(StateConflictError):
    def __init__(self, guild_id: int) -> None:
        self.guild_id = guild_id
        super().__init__(
            "Guild is already at the highest class",
            details={"guild_id": guild_id},
            error_code="GUILD_MAX_CLASS",
        )


class NotInGuildError(StateConflictError):
    def __init__(self, player_id: int) -> None:
        self.player_id = player_id
        super().__init__(
            "Player is not in a guild",
            details={"player_id": player_id},
            error_code="NOT_IN_GUILD",
        )


# ============================================================================
# Preconditions
# ============================================================================


class PreconditionError(GuildhallDomainException):
    """Raised when a well-formed request is made by a player who does not qualify yet."""


class SkillTooLowError(PreconditionError):
    """
    Raised when a skill track is below a recipe's minimum level.

    Args:
        skill_type: The skill track checked
        required: Minimum level required
        current: Player's current level
    """

    def __init__(self, skill_type: str, required: int, current: int) -> None:
        self.skill_type = skill_type
        self.required = required
        self.current = current
        super().__init__(
            f"{skill_type} level too low: need {required}, have {current}",
            details={
                "skill_type": skill_type,
                "required": required,
                "current": current,
            },
            error_code="SKILL_TOO_LOW",
        )


class RankTooLowError(PreconditionError):
    def __init__(self, required_rank: str, current_rank: str) -> None:
        self.required_rank = required_rank
        self.current_rank = current_rank
        super().__init__(
            f"Rank {required_rank} required, current rank is {current_rank}",
            details={
                "required_rank": required_rank,
                "current_rank": current_rank,
            },
            error_code="RANK_TOO_LOW",
        )


class InsufficientResourcesError(PreconditionError):
    """
    Raised when a player lacks required resources for an action.

    Args:
        resource: Name of the resource (an item name, "food", "gold", "stock")
        required: Amount required for the action
        current: Amount the player currently has
    """

    def __init__(self, resource: str, required: int, current: int) -> None:
        self.resource = resource
        self.required = required
        self.current = current
        super().__init__(
            f"Insufficient {resource}: need {required:,}, have {current:,}",
            details={
                "resource": resource,
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code="INSUFFICIENT_RESOURCES",
        )


class CooldownActiveError(PreconditionError):
    """
    Raised when an action is on cooldown.

    Args:
        action: Name of the action on cooldown
        remaining_seconds: Whole seconds until the cooldown expires (rounded up)
    """

    def __init__(self, action: str, remaining_seconds: int) -> None:
        self.action = action
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"{action} is on cooldown: {remaining_seconds}s remaining",
            details={
                "action": action,
                "remaining": remaining_seconds,
                "retry_after": remaining_seconds,
            },
            error_code="COOLDOWN_ACTIVE",
        )


class NotGuildLeaderError(PreconditionError):
    def __init__(self, guild_id: int, player_id: int) -> None:
        self.guild_id = guild_id
        self.player_id = player_id
        super().__init__(
            "Only the guild leader can do this",
            details={"guild_id": guild_id, "player_id": player_id},
            error_code="NOT_GUILD_LEADER",
        )


class GuildRequirementsUnmetError(PreconditionError):
    """
    Raised when a guild does not meet the requirements of the next class.

    Args:
        requirement: "rank" or "adventures"
        required: Required rank letter or adventure count
        current: The failing member's rank, or the guild's adventure total
        message: Player-facing explanation
    """

    def __init__(self, requirement: str, required: Any, current: Any, message: str) -> None:
        self.requirement = requirement
        self.required = required
        self.current = current
        super().__init__(
            message,
            details={
                "requirement": requirement,
                "required": required,
                "current": current,
            },
            error_code="GUILD_REQUIREMENTS_UNMET",
        )


# ============================================================================
# Not found
# ============================================================================


class NotFoundError(GuildhallDomainException):
    """
    Raised when a requested game resource cannot be found.

    Args:
        resource_type: Type of resource (e.g., "Guild", "Shop", "Item")
        identifier: Optional identifier for the missing resource
    """

    def __init__(
        self,
        resource_type: str,
        identifier: Optional[Any] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        if identifier is not None:
            message = f"{resource_type} not found: {identifier}"
        else:
            message = f"{resource_type} not found"
        super().__init__(
            message,
            details={
                "resource_type": resource_type,
                "identifier": identifier,
            },
            error_code=error_code or f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
        )


class NoGatherableItemsError(NotFoundError):
    """
    Raised when a gathering claim finds nothing the player can gather.

    The task is consumed before this is raised.
    """

    def __init__(self, category: str, skill_level: int) -> None:
        self.category = category
        self.skill_level = skill_level
        super().__init__(
            "Gatherable item",
            identifier=category,
            error_code="NO_GATHERABLE_ITEMS",
        )
        self.details["skill_level"] = skill_level


# ============================================================================
# Auth
# ============================================================================


class AuthError(GuildhallDomainException):
    """Raised by callers when the identity provider rejects a request."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, error_code="UNAUTHORIZED")

