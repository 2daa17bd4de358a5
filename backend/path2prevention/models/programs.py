"""Database models for prevention programs and their vector projection.

`Program` is the canonical record; `ProgramLocation` and `ProgramDetails`
hang off it by `program_id`. `ProgramVector` is a denormalized copy of all
three plus the search text and embedding used for semantic search.
"""

from db.session import Base
from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


class Program(Base):
    """Database model for a lifestyle change program provider.

    Attributes:
        id: Primary key.
        organization_name: Name of the organization running the program.
        cdc_recognition_status: CDC recognition label (e.g. "CDC-Recognized").
        mdpp_supplier: Whether the provider is a Medicare DPP supplier.
        contact_phone: Contact phone number.
        contact_email: Contact email address.
        website_url: Provider website.
        description: Free-text description.
        created_at: Record creation timestamp.
        updated_at: Record update timestamp.
    """

    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, index=True)
    organization_name = Column(String(255), nullable=False)
    cdc_recognition_status = Column(String(100))
    mdpp_supplier = Column(Boolean, default=False)
    contact_phone = Column(String(20))
    contact_email = Column(String(255))
    website_url = Column(Text)
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    locations = relationship(
        "ProgramLocation", back_populates="program", cascade="all, delete-orphan"
    )
    details = relationship(
        "ProgramDetails", back_populates="program", cascade="all, delete-orphan"
    )


class ProgramLocation(Base):
    """Street address and coordinates of a program."""

    __tablename__ = "program_locations"

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("programs.id", ondelete="CASCADE"))
    address_line1 = Column(String(255))
    address_line2 = Column(String(255))
    city = Column(String(100), nullable=False)
    state = Column(String(2), nullable=False)
    zip_code = Column(String(10), nullable=False)
    latitude = Column(Numeric(10, 8))
    longitude = Column(Numeric(11, 8))
    created_at = Column(DateTime, server_default=func.now())

    program = relationship("Program", back_populates="locations")


class ProgramDetails(Base):
    """Delivery, schedule, cost and enrollment details of a program.

    Attributes:
        delivery_mode: One of `in-person`, `virtual-live`,
            `virtual-self-paced` or `hybrid`.
        enrollment_status: One of `open`, `closed` or `waitlist`.
    """

    __tablename__ = "program_details"

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("programs.id", ondelete="CASCADE"))
    delivery_mode = Column(String(50))
    language = Column(String(50), default="English")
    class_schedule = Column(Text)
    duration_weeks = Column(Integer)
    cost = Column(Numeric(10, 2))
    insurance_accepted = Column(ARRAY(Text))
    max_participants = Column(Integer)
    current_participants = Column(Integer, default=0)
    enrollment_status = Column(String(20), default="open")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    program = relationship("Program", back_populates="details")


class ProgramVector(Base):
    """Denormalized program row with its search text and embedding.

    The row is always written as a whole (see `VectorStore.upsert_program`)
    so `search_text` and `embedding` never drift from the other columns.
    """

    __tablename__ = "programs_vector"

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, unique=True, nullable=False)
    organization_name = Column(String(255), nullable=False)
    description = Column(Text)
    city = Column(String(100))
    state = Column(String(2))
    zip_code = Column(String(10))
    delivery_mode = Column(String(50))
    language = Column(String(50), default="English")
    cost = Column(Numeric(10, 2))
    duration_weeks = Column(Integer)
    enrollment_status = Column(String(20), default="open")
    cdc_recognition_status = Column(String(100))
    mdpp_supplier = Column(Boolean, default=False)
    contact_phone = Column(String(20))
    contact_email = Column(String(255))
    website_url = Column(Text)
    class_schedule = Column(Text)
    search_text = Column(Text)
    # NOTE: 384 dimensions matches all-MiniLM-L6-v2.
    embedding = Column(Vector(384))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
