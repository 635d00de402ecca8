from app.db.session import engine
from app.db.base import Base
import app.db.models  # noqa: F401  registers every model on Base.metadata


def init_db():
    """Create any missing tables. Alembic owns schema changes in production."""
    Base.metadata.create_all(bind=engine)
