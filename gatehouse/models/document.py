# gatehouse/models/document.py
"""
Documents table: every record of every collection lives here.
Rows are schema-less JSON blobs addressed by (collection, doc_id).
Only the document store reads and writes this table.
"""

from sqlalchemy import Column, String, DateTime, JSON
from gatehouse.database import Base


class Document(Base):
    __tablename__ = "documents"

    collection = Column(String(100), primary_key=True)
    doc_id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=False)

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.doc_id}"

    def __repr__(self):
        return f"<Document {self.collection}/{self.doc_id}>"
