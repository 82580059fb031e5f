from typing import List

from pydantic import BaseModel


class RoleResponse(BaseModel):
    id: int
    name: str
    guard_name: str
    permissions: List[str]
    users_count: int
