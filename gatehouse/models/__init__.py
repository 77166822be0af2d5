# Gatehouse database models
# Import all models here for SQLAlchemy discovery

from gatehouse.models.document import Document   # noqa
