from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a student, faculty member or admin.

    Note: Identity itself is managed elsewhere; we only read role and the
    cohort attributes used for analytics.
    """

    user_id: int
    full_name: str
    email: str
    role: Role
    department: Optional[str] = None
    semester: Optional[int] = None
    is_active: bool = True
