"""
Database models for CarLeads
Users, VAs, leads with their status history, commissions, settings and audit trail
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, event
from sqlalchemy.orm import relationship

from core.utils import utc_now
from database.base import Base, DatabaseAgnosticEnum, generate_uuid


# Enums
class UserRole(str, enum.Enum):
    SUPERADMIN = "SUPERADMIN"
    MANAGER = "MANAGER"
    VA = "VA"


class LeadStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CONTACTED = "CONTACTED"
    BOUGHT = "BOUGHT"
    SOLD = "SOLD"
    PAID = "PAID"
    REJECTED = "REJECTED"


class AuditAction(str, enum.Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    STATUS_CHANGE = "STATUS_CHANGE"
    MARK_PAID = "MARK_PAID"
    EXPORT = "EXPORT"
    INVITE = "INVITE"
    CREATE_VA_ACCOUNT = "CREATE_VA_ACCOUNT"
    DELETE_VA_ACCOUNT = "DELETE_VA_ACCOUNT"
    RESET_PASSWORD = "RESET_PASSWORD"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255))  # Null for magic-link-only accounts
    role = Column(DatabaseAgnosticEnum(UserRole), nullable=False, default=UserRole.VA)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    va = relationship("VA", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class VA(Base):
    __tablename__ = "vas"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("users.id"), unique=True)
    name = Column(String(255), nullable=False)
    commission_percentage = Column(Numeric(5, 4))  # Fraction 0..1, null falls back to the global rate
    timezone = Column(String(64), default="UTC")
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="va")
    leads = relationship("Lead", back_populates="va")

    def __repr__(self):
        return f"<VA(id={self.id}, name={self.name})>"


class Lead(Base):
    __tablename__ = "leads"

    id = Column(String, primary_key=True, default=generate_uuid)
    va_id = Column(String, ForeignKey("vas.id"), index=True)

    # Vehicle
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    mileage = Column(Integer)

    # Money
    asking_price = Column(Numeric(10, 2), nullable=False)
    estimated_sale_price = Column(Numeric(10, 2), nullable=False)
    expenses_estimate = Column(Numeric(10, 2), nullable=False, default=0)
    estimated_profit = Column(Numeric(10, 2), nullable=False, default=0)

    # Listing
    source_url = Column(Text, nullable=False)
    normalized_source_url = Column(Text, nullable=False, unique=True)
    seller_contact = Column(String(255))
    location = Column(String(255))
    preview_image_url = Column(Text)

    status = Column(DatabaseAgnosticEnum(LeadStatus), nullable=False, default=LeadStatus.PENDING)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    va = relationship("VA", back_populates="leads")
    events = relationship("LeadEvent", back_populates="lead", order_by="LeadEvent.created_at")
    commission = relationship("Commission", back_populates="lead", uselist=False)

    __table_args__ = (
        Index("idx_leads_status", "status"),
        Index("idx_leads_make_model_created", "make", "model", "created_at"),
    )

    @property
    def va_name(self) -> str:
        """Submitting VA, or "Admin" for leads entered without one"""
        return self.va.name if self.va else "Admin"

    def __repr__(self):
        return f"<Lead(id={self.id}, {self.year} {self.make} {self.model}, status={self.status})>"


class LeadEvent(Base):
    """Append-only status history for a lead"""

    __tablename__ = "lead_events"

    id = Column(String, primary_key=True, default=generate_uuid)
    lead_id = Column(String, ForeignKey("leads.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"))
    from_status = Column(DatabaseAgnosticEnum(LeadStatus))  # Null for the creation event
    to_status = Column(DatabaseAgnosticEnum(LeadStatus), nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    lead = relationship("Lead", back_populates="events")


@event.listens_for(LeadEvent, "before_update")
def prevent_lead_event_update(mapper, connection, target):
    """Lead events are immutable"""
    raise ValueError("Lead events cannot be modified")


class Commission(Base):
    __tablename__ = "commissions"

    id = Column(String, primary_key=True, default=generate_uuid)
    lead_id = Column(String, ForeignKey("leads.id"), nullable=False, unique=True)
    va_id = Column(String, ForeignKey("vas.id"), index=True)  # Null once the VA is deleted
    amount = Column(Numeric(10, 2), nullable=False)
    is_due = Column(Boolean, nullable=False, default=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True))
    paid_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    lead = relationship("Lead", back_populates="commission")
    va = relationship("VA")

    def __repr__(self):
        return f"<Commission(id={self.id}, lead_id={self.lead_id}, amount={self.amount}, paid={self.is_paid})>"


class Setting(Base):
    __tablename__ = "settings"

    id = Column(String, primary_key=True, default=generate_uuid)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)


class AuditLog(Base):
    """Append-only record of user actions"""

    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("users.id"), index=True)  # Null once anonymized
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50))
    resource_id = Column(String)
    details = Column(Text)
    ip_address = Column(String(45))
    user_agent = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)


class Invite(Base):
    __tablename__ = "invites"

    id = Column(String, primary_key=True, default=generate_uuid)
    token = Column(String(64), unique=True, nullable=False)
    email = Column(String(255), nullable=False)
    role = Column(DatabaseAgnosticEnum(UserRole), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True))
    created_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class MagicToken(Base):
    __tablename__ = "magic_tokens"

    id = Column(String, primary_key=True, default=generate_uuid)
    token = Column(String(64), unique=True, nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
