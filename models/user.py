from pydantic import BaseModel
from typing import Literal, Optional, get_args

from .fields import NonEmptyStr

# any status may move to any other, there is no transition graph
UserStatus = Literal["active", "suspended", "reactivated"]
USER_STATUSES = get_args(UserStatus)
DEFAULT_STATUS = "active"

class UserIn(BaseModel):
    studentId: NonEmptyStr
    role: NonEmptyStr

class StatusUpdateIn(BaseModel):
    studentId: NonEmptyStr
    status: UserStatus

class User(BaseModel):
    id: Optional[str] = None
    studentId: str
    role: str
    status: UserStatus = DEFAULT_STATUS

    def to_doc(self) -> dict:
        return self.model_dump(exclude={"id"})
