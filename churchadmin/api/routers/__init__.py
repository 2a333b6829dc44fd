"""API routers for Church Admin."""

from . import auth
from . import cellgroups
from . import events
from . import finance
from . import health
from . import members
from . import offerings
from . import roles
from . import settings
from . import tags
from . import users

__all__ = [
    "auth",
    "cellgroups",
    "events",
    "finance",
    "health",
    "members",
    "offerings",
    "roles",
    "settings",
    "tags",
    "users",
]
