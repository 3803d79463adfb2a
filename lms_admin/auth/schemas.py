from typing import Optional

from pydantic import BaseModel, Field


class SessionUser(BaseModel):
    """The user record stored in the signed session cookie under "user"."""

    id: int
    name: str
    email: str
    role: str
    organization: str
    department: Optional[str] = None
    employee_id: Optional[str] = Field(None, alias="employeeId")
    avatar: Optional[str] = None

    class Config:
        populate_by_name = True

    def to_session(self) -> dict:
        return self.model_dump(by_alias=True)
