from enum import Enum
from typing import Dict, FrozenSet, NamedTuple

from lms.services.errors import ForbiddenError


class Role(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class Action(str, Enum):
    ENROLL = "enroll"
    UPDATE_PROGRESS = "update_progress"
    LIST_ENROLLED_COURSES = "list_enrolled_courses"
    VIEW_PROGRESS = "view_progress"
    RESYNC_COURSE_INDEX = "resync_course_index"
    MANAGE_COURSES = "manage_courses"


class Caller(NamedTuple):
    """Identidad verificada de quien hace el request."""
    user_id: str
    role: Role


# Toda acción tiene que aparecer acá; un rol nuevo obliga a revisar esta tabla.
POLICY: Dict[Action, FrozenSet[Role]] = {
    Action.ENROLL: frozenset({Role.STUDENT}),
    Action.UPDATE_PROGRESS: frozenset({Role.STUDENT}),
    Action.LIST_ENROLLED_COURSES: frozenset({Role.STUDENT, Role.ADMIN}),
    Action.VIEW_PROGRESS: frozenset({Role.STUDENT, Role.ADMIN}),
    Action.RESYNC_COURSE_INDEX: frozenset({Role.ADMIN}),
    Action.MANAGE_COURSES: frozenset({Role.ADMIN}),
}


def is_allowed(role: Role, action: Action) -> bool:
    return role in POLICY[action]


def authorize(caller: Caller, action: Action) -> None:
    if not is_allowed(caller.role, action):
        raise ForbiddenError(f"Role '{caller.role.value}' cannot perform '{action.value}'")
