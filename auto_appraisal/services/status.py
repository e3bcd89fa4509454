from typing import Dict, FrozenSet, Optional

from auto_appraisal.errors import InvalidTransition
from auto_appraisal.models.claim import ClaimStatus

STATUS_COLORS: Dict[Optional[ClaimStatus], str] = {
    ClaimStatus.COMPLETED: "#4CAF50",
    ClaimStatus.IN_PROGRESS: "#FF9800",
    ClaimStatus.SCHEDULED: "#2196F3",
}
NO_STATUS_COLOR = "#9E9E9E"

_ALL: FrozenSet[ClaimStatus] = frozenset(ClaimStatus)

# Any state may be set from any other, including itself; a claim with no
# status yet counts as the None state.
TRANSITIONS: Dict[Optional[ClaimStatus], FrozenSet[ClaimStatus]] = {
    None: _ALL,
    ClaimStatus.SCHEDULED: _ALL,
    ClaimStatus.IN_PROGRESS: _ALL,
    ClaimStatus.COMPLETED: _ALL,
}


def status_color(status: Optional[ClaimStatus]) -> str:
    return STATUS_COLORS.get(status, NO_STATUS_COLOR)


def validate_transition(current: Optional[ClaimStatus], target) -> ClaimStatus:
    """Return target as a ClaimStatus, or raise InvalidTransition"""
    try:
        target = ClaimStatus(target)
    except ValueError as e:
        raise InvalidTransition(f"Unknown status: {target!r}") from e
    if target not in TRANSITIONS.get(current, frozenset()):
        current_name = current.value if current else "none"
        raise InvalidTransition(f"Cannot move claim from {current_name} to {target.value}")
    return target
