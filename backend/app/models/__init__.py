"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Project is the aggregate root for members; tasks and invitations reference it by id

Design Decisions:
    - One file per entity for locality; join rows live beside their owning entity
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.user import User, UserProject  # noqa: F401
from app.models.project import Project, ProjectMember  # noqa: F401
from app.models.task import Task, TaskComment  # noqa: F401
from app.models.invitation import Invitation  # noqa: F401
