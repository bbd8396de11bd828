from pydantic import BaseModel
from typing import Any, Optional

from .fields import NonEmptyStr

class AccessIn(BaseModel):
    studentId: NonEmptyStr
    role: NonEmptyStr

class AccessRecordOut(BaseModel):
    id: str
    # stored records are loosely typed, pass whatever the store holds
    studentId: Any = None
    role: Any = None
    timestamp: Optional[str] = None  # ISO-8601, None when the stored value is not a datetime
