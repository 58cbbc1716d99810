from sprintboard.db.base import Base
from sprintboard.db.session import Database

# Registers the models on Base.metadata before creating tables
import sprintboard.models  # noqa: F401


def init_db(database: Database) -> None:
    Base.metadata.create_all(bind=database.engine)
