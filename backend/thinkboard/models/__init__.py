# Models package init
"""
Importing this package registers every model with `Base.metadata`, which
Alembic and the test suite's `create_all` rely on.
"""

from thinkboard.models.note import Note
from thinkboard.models.user import User

__all__ = ["Note", "User"]
