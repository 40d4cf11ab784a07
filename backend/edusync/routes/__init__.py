"""HTTP controllers, one router per resource.

Routers carry no authorization logic of their own: the application-wide
gate in `edusync.auth` enforces `edusync.policy.ROLE_POLICY` before any
handler runs.
"""

from .assessments import router as assessments_router
from .auth import router as auth_router
from .courses import router as courses_router
from .results import router as results_router
from .users import router as users_router

ROUTERS = (auth_router, courses_router, assessments_router, results_router, users_router)
