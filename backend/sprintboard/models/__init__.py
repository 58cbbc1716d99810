# Import the models here so SQLAlchemy sees them when creating tables
from sprintboard.models.user import User  # noqa: F401
from sprintboard.models.run import Run  # noqa: F401
