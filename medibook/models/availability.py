from datetime import date
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Boolean, Time, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class DayOfWeek(enum.IntEnum):
    """Day of week, numbered from Sunday = 0."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        # date.weekday() counts from Monday = 0
        return cls((value.weekday() + 1) % 7)

    @classmethod
    def parse(cls, value) -> "DayOfWeek":
        """Accept the ordinal (int or digit string) or the English day name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid day of week: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                pass
        raise ValueError(f"Invalid day of week: {value!r}")

class Availability(Base):
    """Recurring weekly window in which a doctor can be booked."""
    __tablename__ = "availabilities"
    __table_args__ = (
        Index("ix_availabilities_doctor_day", "doctor_id", "day_of_week"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    
    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)
    
    # Relationships
    doctor = relationship("Doctor", back_populates="availabilities")
    
    def overlaps(self, start_time, end_time) -> bool:
        """Half-open interval overlap against ``[start_time, end_time)``."""
        return self.start_time < end_time and start_time < self.end_time
    
    def __repr__(self):
        return (
            f"<Availability(id={self.id}, doctor_id={self.doctor_id}, "
            f"day={DayOfWeek(self.day_of_week).name}, {self.start_time}-{self.end_time})>"
        )
