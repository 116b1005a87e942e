from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class GroupSnapshot(BaseModel):
    name: str
    members: Dict[str, bool] = Field(default_factory=dict, description="member id -> completed flag")
    outstanding: List[str] = Field(default_factory=list, description="Member ids still waiting")


class RegistrationSnapshot(BaseModel):
    name: str
    callbacks: int = Field(description="Number of attached callbacks")
    remove: bool = False
    reset: bool = False
    last_run: Optional[float] = Field(default=None, description="Clock reading of the last fire (ms)")


class CoordinatorSnapshot(BaseModel):
    taken_at: float
    debounce_window_ms: float
    groups: List[GroupSnapshot] = Field(default_factory=list)
    registrations: List[RegistrationSnapshot] = Field(default_factory=list)

    def group(self, name: str) -> Optional[GroupSnapshot]:
        for group in self.groups:
            if group.name == name:
                return group
        return None

    def registration(self, name: str) -> Optional[RegistrationSnapshot]:
        for registration in self.registrations:
            if registration.name == name:
                return registration
        return None
