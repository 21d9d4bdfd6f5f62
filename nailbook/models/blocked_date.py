import uuid
import enum
from sqlalchemy import Column, String, Date, DateTime, func, Uuid, Index, Enum as SAEnum
from nailbook.db.session import Base

class BlockScope(str, enum.Enum):
    single = "single"
    range = "range"
    month = "month"

class BlockedDate(Base):
    __tablename__ = "blocked_dates"
    __table_args__ = (
        Index("ix_blocked_dates_range", "start_date", "end_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False) # inclusive
    scope = Column(SAEnum(BlockScope, native_enum=False), nullable=False, default=BlockScope.range) # descriptive only
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<BlockedDate {self.start_date}..{self.end_date} {self.reason}>"
