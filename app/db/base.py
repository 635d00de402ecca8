from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Models import Base from this module; app.db.models registers all of them
