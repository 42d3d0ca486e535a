from parentplanner.db.base_class import Base

# Import ALL models so SQLAlchemy registers them
from parentplanner.models.document import StoredDocument  # noqa: F401
