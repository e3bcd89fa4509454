"""
Result values returned by every user-facing action.

Each one carries what the user should be told (notices), where to go next,
and whether the action is waiting on a confirmation before it can proceed.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


class Notice(BaseModel):
    level: Literal["info", "success", "warning", "error"]
    message: str


class ConfirmationRequest(BaseModel):
    """A decision point: the caller repeats the action once the user agrees"""
    action: str = Field(..., description="override_claim, delete_photo or delete_claim")
    message: str
    require_text: Optional[str] = Field(default=None, description="Literal text the user must type to proceed")


class ActionResult(BaseModel):
    ok: bool
    notices: List[Notice] = Field(default_factory=list)
    redirect_to: Optional[str] = None
    confirm: Optional[ConfirmationRequest] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def success(cls, message: str | None = None, redirect_to: str | None = None, **data) -> "ActionResult":
        notices = [Notice(level="success", message=message)] if message else []
        return cls(ok=True, notices=notices, redirect_to=redirect_to, data=data)

    @classmethod
    def failure(cls, message: str, level: str = "error", **data) -> "ActionResult":
        return cls(ok=False, notices=[Notice(level=level, message=message)], data=data)

    @classmethod
    def needs_confirmation(cls, action: str, message: str, require_text: str | None = None) -> "ActionResult":
        return cls(
            ok=False,
            confirm=ConfirmationRequest(action=action, message=message, require_text=require_text),
        )

    @property
    def errors(self) -> List[str]:
        return [n.message for n in self.notices if n.level == "error"]
