"""Declarative role policy: which roles may call which endpoint.

Each entry maps ``(HTTP method, route path template)`` to a
`Requirement`. The mapping is built once at import and never mutated;
`edusync.auth.authorize` is the only place that evaluates it.

Several read endpoints deliberately require authentication only (no
role restriction). Routes missing from the mapping, such as the health
probe and the API docs, are public.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from .models import Role


@dataclass(frozen=True)
class Requirement:
    """What a caller needs to reach an endpoint.

    `public` endpoints skip token checks entirely. Otherwise a valid
    token is required, and when `roles` is non-empty its role claim must
    be one of them.
    """
    roles: FrozenSet[Role] = frozenset()
    public: bool = False

    def permits(self, role: Optional[Role]) -> bool:
        if self.public or not self.roles:
            return True
        return role in self.roles


PUBLIC = Requirement(public=True)
AUTHENTICATED = Requirement()


def any_of(*roles: Role) -> Requirement:
    return Requirement(roles=frozenset(roles))


STAFF = any_of(Role.ADMIN, Role.INSTRUCTOR)
ADMIN = any_of(Role.ADMIN)

RouteKey = Tuple[str, str]


class RolePolicy:
    """Immutable lookup table from route to `Requirement`."""

    def __init__(self, rules: Mapping[RouteKey, Requirement]):
        self._rules = MappingProxyType({(m.upper(), p): r for (m, p), r in rules.items()})

    def requirement_for(self, method: str, path: str) -> Requirement:
        return self._rules.get((method.upper(), path), PUBLIC)

    def is_declared(self, method: str, path: str) -> bool:
        return (method.upper(), path) in self._rules

    @property
    def rules(self) -> Mapping[RouteKey, Requirement]:
        return self._rules


ROLE_POLICY = RolePolicy({
    ("POST", "/api/auth/register"): PUBLIC,
    ("POST", "/api/auth/login"): PUBLIC,

    ("GET", "/api/courses"): AUTHENTICATED,
    ("GET", "/api/courses/{course_id}"): AUTHENTICATED,
    ("POST", "/api/courses"): STAFF,
    ("PUT", "/api/courses/{course_id}"): STAFF,
    ("DELETE", "/api/courses/{course_id}"): STAFF,

    ("GET", "/api/assessments"): AUTHENTICATED,
    ("GET", "/api/assessments/{assessment_id}"): AUTHENTICATED,
    ("POST", "/api/assessments"): STAFF,
    ("PUT", "/api/assessments/{assessment_id}"): STAFF,
    ("DELETE", "/api/assessments/{assessment_id}"): STAFF,

    # students submit their own attempts
    ("GET", "/api/results"): AUTHENTICATED,
    ("GET", "/api/results/{result_id}"): AUTHENTICATED,
    ("POST", "/api/results"): AUTHENTICATED,
    ("PUT", "/api/results/{result_id}"): STAFF,
    ("DELETE", "/api/results/{result_id}"): STAFF,

    ("GET", "/api/users"): STAFF,
    ("GET", "/api/users/{user_id}"): AUTHENTICATED,
    # self-or-admin is decided by UserService.update
    ("PUT", "/api/users/{user_id}"): AUTHENTICATED,
    ("DELETE", "/api/users/{user_id}"): ADMIN,
})
