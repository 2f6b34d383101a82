"""
SQLAlchemy ORM Models
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    TIMESTAMP,
    UniqueConstraint,
    true,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy import Index

from app.db.database import Base

# ============================================================================
# Enums
# ============================================================================

class UserRole(str, enum.Enum):
    """User roles"""
    super_admin = "super_admin"
    coordinator = "coordinator"
    counsellor = "counsellor"
    lawyer = "lawyer"
    client = "client"


STAFF_ROLES = (UserRole.super_admin, UserRole.coordinator, UserRole.counsellor, UserRole.lawyer)
EMIRATE_SCOPED_ROLES = (UserRole.coordinator, UserRole.counsellor)


class CaseStatus(str, enum.Enum):
    """Case status enum"""
    pending = "pending"
    active = "active"
    in_progress = "in_progress"
    on_hold = "on_hold"
    completed = "completed"
    closed = "closed"
    rejected = "rejected"


class ApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class UrgencyLevel(str, enum.Enum):
    """Urgency levels"""
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class YesNo(str, enum.Enum):
    yes = "yes"
    no = "no"


class ConsultationType(str, enum.Enum):
    in_person = "in_person"
    video = "video"
    phone = "phone"


class ConsultationStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"
    rescheduled = "rescheduled"


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class NotificationType(str, enum.Enum):
    sms = "sms"
    whatsapp = "whatsapp"
    email = "email"


class NotificationStatus(str, enum.Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class PasswordResetStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class SubscriptionStatus(str, enum.Enum):
    subscribed = "subscribed"
    unsubscribed = "unsubscribed"


class JailType(str, enum.Enum):
    Men = "Men"
    Women = "Women"
    Youth = "Youth"
    Mixed = "Mixed"


class JailVisitStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    more_info_needed = "more_info_needed"


class QuotationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class MessageStatus(str, enum.Enum):
    pending = "pending"
    replied = "replied"
    closed = "closed"


class MessagePriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class InquiryUrgency(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class ConsultationPreference(str, enum.Enum):
    office = "office"
    video = "video"
    phone = "phone"


class InquiryStatus(str, enum.Enum):
    pending = "pending"
    reviewed = "reviewed"
    converted = "converted"
    rejected = "rejected"


# ============================================================================
# Users & authentication
# ============================================================================

class User(Base):
    """Staff member or client"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True, index=True)
    phone_verified = Column(Boolean, nullable=False, default=False)

    # Profile
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.client)
    assigned_emirates = Column(JSON, nullable=True)
    specializations = Column(JSON, nullable=True)  # case type ids
    permissions = Column(JSON, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    case_number = Column(String(100), nullable=True)
    client_number = Column(String(50), unique=True, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    last_login = Column(TIMESTAMP, nullable=True)
    last_login_ip = Column(String(100), nullable=True)

    # Two-factor
    two_factor_enabled = Column(Boolean, nullable=False, default=False)
    two_factor_secret = Column(String(255), nullable=True)
    two_factor_confirmed_at = Column(TIMESTAMP, nullable=True)
    two_factor_failed_attempts = Column(Integer, nullable=False, default=0)
    two_factor_lock_until = Column(TIMESTAMP, nullable=True)

    # Extended client details
    nationality = Column(String(100), nullable=True)
    emirates_id = Column(String(50), nullable=True)
    whatsapp_number = Column(String(50), nullable=True)
    landline_number = Column(String(50), nullable=True)
    company_name = Column(String(255), nullable=True)
    company_address = Column(Text, nullable=True)
    company_email = Column(String(255), nullable=True)
    company_phone = Column(String(50), nullable=True)
    occupation = Column(String(255), nullable=True)
    employer_name = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class OtpSession(Base):
    """Pending phone-login OTP"""
    __tablename__ = "otp_sessions"

    id = Column(String(64), primary_key=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    otp_hash = Column(String(255), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    expires_at = Column(TIMESTAMP, nullable=False, index=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class PasswordResetRequest(Base):
    """Admin-mediated password reset request"""
    __tablename__ = "password_resets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(SQLEnum(PasswordResetStatus), nullable=False, default=PasswordResetStatus.pending)
    request_date = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    approved_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_date = Column(TIMESTAMP, nullable=True)
    expires_at = Column(TIMESTAMP, nullable=False)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])


# ============================================================================
# Cases
# ============================================================================

class Case(Base):
    """Legal case model"""
    __tablename__ = "cases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_number = Column(String(100), unique=True, nullable=False, index=True)

    # Foreign Keys
    client_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    coordinator_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    counsellor_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    lawyer_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Client snapshot
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    emirates_id = Column(String(100), nullable=True)
    nationality = Column(String(100), nullable=True)
    whatsapp_number = Column(String(50), nullable=True)
    landline_number = Column(String(50), nullable=True)
    company_address = Column(String(255), nullable=True)
    company_number = Column(String(100), nullable=True)
    company_email = Column(String(255), nullable=True)

    # Employment
    occupation = Column(JSON, nullable=True)  # occupation sub-type ids
    employer_name = Column(String(255), nullable=True)
    employer_number = Column(String(100), nullable=True)
    employer_address = Column(String(255), nullable=True)
    salary = Column(Numeric(10, 2), nullable=True)
    last_day_of_work = Column(TIMESTAMP, nullable=True)
    still_on_duty = Column(SQLEnum(YesNo), nullable=True)
    work_period_start = Column(TIMESTAMP, nullable=True)
    work_period_end = Column(TIMESTAMP, nullable=True)

    # Contacts
    family_member_name = Column(String(255), nullable=True)
    family_member_number = Column(String(50), nullable=True)
    friend_name = Column(String(255), nullable=True)
    friend_number = Column(String(50), nullable=True)

    # Classification (taxonomy ids)
    case_type = Column(String(255), nullable=True)
    case_category = Column(String(255), nullable=True)
    case_sub_category = Column(String(255), nullable=True)
    emirate = Column(String(100), nullable=True, index=True)
    court_area = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # Status
    urgency_level = Column(SQLEnum(UrgencyLevel), nullable=False, default=UrgencyLevel.medium)
    status = Column(SQLEnum(CaseStatus), nullable=False, default=CaseStatus.pending, index=True)
    approval_status = Column(SQLEnum(ApprovalStatus), nullable=False, default=ApprovalStatus.pending)

    # Dates
    registration_date = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    hearing_date = Column(TIMESTAMP, nullable=True)
    next_hearing_date = Column(TIMESTAMP, nullable=True)
    closed_date = Column(TIMESTAMP, nullable=True)

    # Money
    estimated_cost = Column(Numeric(10, 2), nullable=True, default=0)
    paid_amount = Column(Numeric(10, 2), nullable=False, default=0)
    remaining_amount = Column(Numeric(10, 2), nullable=True, default=0)

    notes = Column(Text, nullable=True)
    reference_source = Column(String(255), nullable=True)
    reference_other_details = Column(Text, nullable=True)
    region_group = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    signature = Column(Text, nullable=True)

    # Detention
    jail_visiting = Column(Boolean, nullable=True, default=False)
    date_of_endorsement = Column(Date, nullable=True)
    jail_name = Column(String(255), nullable=True)
    date_of_arrest = Column(Date, nullable=True)
    report_number = Column(String(100), nullable=True)
    date_of_visiting = Column(Date, nullable=True)

    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    client = relationship("User", foreign_keys=[client_id])
    coordinator = relationship("User", foreign_keys=[coordinator_id])
    counsellor = relationship("User", foreign_keys=[counsellor_id])
    lawyer = relationship("User", foreign_keys=[lawyer_id])
    tracking_records = relationship("CaseTracking", back_populates="case", cascade="all, delete-orphan")
    expenses = relationship("CaseExpense", back_populates="case", cascade="all, delete-orphan")
    documents = relationship("Document", back_populates="case", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="case")


class CaseTracking(Base):
    """Per-case audit entry; change_number is sequential within a case."""
    __tablename__ = "case_tracking"
    __table_args__ = (
        UniqueConstraint("case_id", "change_number", name="uq_case_tracking_case_change"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    change_number = Column(Integer, nullable=False)
    change_type = Column(String(100), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    # Manual entry annotations
    next_hearing = Column(Date, nullable=True)
    reason = Column(Text, nullable=True)
    action_required = Column(Text, nullable=True)
    date_of_action_required = Column(Date, nullable=True)
    work_undertaken = Column(Text, nullable=True)
    other = Column(Text, nullable=True)
    staff_name = Column(String(255), nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    case = relationship("Case", back_populates="tracking_records")
    user = relationship("User", foreign_keys=[user_id])


class CaseExpense(Base):
    __tablename__ = "case_expenses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    expense = Column(String(255), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="expenses")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="SET NULL"), nullable=True, index=True)
    client_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    consultation_id = Column(Uuid, ForeignKey("consultations.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), nullable=False, default="AED")
    payment_method = Column(String(50), nullable=True)  # card, bank_transfer, cash, cheque ...
    status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.pending)
    transaction_id = Column(String(255), nullable=True)
    gateway_response = Column(JSON, nullable=True)
    invoice_number = Column(String(100), unique=True, nullable=True)
    invoice_date = Column(TIMESTAMP, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="payments")


class Document(Base):
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    uploaded_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    file_name = Column(String(255), nullable=False)
    original_file_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_path = Column(String(500), nullable=False)
    file_url = Column(String(1000), nullable=True)
    category = Column(String(100), nullable=False, default="general")
    description = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="documents")
    uploader = relationship("User", foreign_keys=[uploaded_by])


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    counsellor_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    lawyer_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="SET NULL"), nullable=True)
    type = Column(SQLEnum(ConsultationType), nullable=False, default=ConsultationType.in_person)
    status = Column(SQLEnum(ConsultationStatus), nullable=False, default=ConsultationStatus.pending)
    scheduled_date = Column(TIMESTAMP, nullable=True)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    price = Column(Numeric(10, 2), nullable=False, default=400.00)
    client_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    payment_method = Column(String(50), nullable=True, default="later")
    notes = Column(Text, nullable=True)
    outcome_notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(SQLEnum(NotificationType), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(SQLEnum(NotificationStatus), nullable=False, default=NotificationStatus.pending)
    sent_at = Column(TIMESTAMP, nullable=True)
    error_message = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(JSON, nullable=True)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Subscription(Base):
    """Newsletter subscription"""
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(SQLEnum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.subscribed)
    source = Column(String(100), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# ============================================================================
# Taxonomies
# ============================================================================

class CaseType(Base):
    __tablename__ = "case_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), unique=True, nullable=False)
    code = Column(String(50), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    categories = relationship(
        "CaseCategory", back_populates="case_type", cascade="all, delete-orphan", order_by="CaseCategory.name"
    )


class CaseCategory(Base):
    __tablename__ = "case_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    case_type_id = Column(Uuid, ForeignKey("case_types.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case_type = relationship("CaseType", back_populates="categories")
    sub_categories = relationship(
        "CaseSubCategory", back_populates="category", cascade="all, delete-orphan", order_by="CaseSubCategory.name"
    )


class CaseSubCategory(Base):
    __tablename__ = "case_sub_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    category_id = Column(Uuid, ForeignKey("case_categories.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("CaseCategory", back_populates="sub_categories")


class WorkOccupationType(Base):
    __tablename__ = "work_occupation_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    sub_types = relationship(
        "WorkOccupationSubType",
        back_populates="occupation_type",
        cascade="all, delete-orphan",
        order_by="WorkOccupationSubType.name",
    )


class WorkOccupationSubType(Base):
    __tablename__ = "work_occupation_sub_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    occupation_type_id = Column(
        Uuid, ForeignKey("work_occupation_types.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    occupation_type = relationship("WorkOccupationType", back_populates="sub_types")


# ============================================================================
# Detention: police stations, jails, visits, court quotations
# ============================================================================

class PoliceStation(Base):
    __tablename__ = "police_stations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    emirate = Column(String(50), nullable=False, index=True)
    address = Column(Text, nullable=False)
    contact_number = Column(String(50), nullable=False)
    officer_in_charge = Column(String(255), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    jails = relationship("Jail", back_populates="police_station", cascade="all, delete-orphan", order_by="Jail.name")


class Jail(Base):
    __tablename__ = "jails"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    police_station_id = Column(Uuid, ForeignKey("police_stations.id", ondelete="CASCADE"), nullable=False, index=True)
    emirate = Column(String(50), nullable=False, index=True)
    jail_type = Column(SQLEnum(JailType), nullable=False, default=JailType.Men)
    capacity = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    police_station = relationship("PoliceStation", back_populates="jails")


class JailVisit(Base):
    __tablename__ = "jail_visits"
    __table_args__ = (
        Index("ix_jail_visits_counselor_status", "counselor_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_number = Column(String(100), nullable=False)
    accused_name = Column(String(255), nullable=False)
    jail_id = Column(Uuid, ForeignKey("jails.id"), nullable=False)
    emirate = Column(String(50), nullable=False)
    counselor_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    requested_date = Column(Date, nullable=False)
    requested_time = Column(Time, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(SQLEnum(JailVisitStatus), nullable=False, default=JailVisitStatus.pending)
    approved_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_date = Column(TIMESTAMP, nullable=True)
    remarks = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    jail = relationship("Jail")
    counselor = relationship("User", foreign_keys=[counselor_id])
    approver = relationship("User", foreign_keys=[approved_by])


class CourtQuotation(Base):
    __tablename__ = "court_quotations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_number = Column(String(100), ForeignKey("cases.case_number", ondelete="CASCADE"), nullable=False)
    emirate = Column(String(50), nullable=False)
    court = Column(String(255), nullable=False)
    client_name = Column(String(255), nullable=False)
    client_contact = Column(String(100), nullable=True)
    fee_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(SQLEnum(QuotationStatus), nullable=False, default=QuotationStatus.pending)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    approved_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_date = Column(TIMESTAMP, nullable=True)
    remarks = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])
    approver = relationship("User", foreign_keys=[approved_by])


# ============================================================================
# Client communication
# ============================================================================

class Message(Base):
    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(SQLEnum(MessageStatus), nullable=False, default=MessageStatus.pending)
    priority = Column(SQLEnum(MessagePriority), nullable=False, default=MessagePriority.medium)
    admin_reply = Column(Text, nullable=True)
    replied_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    replied_at = Column(TIMESTAMP, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    client_read = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("User", foreign_keys=[client_id])
    replier = relationship("User", foreign_keys=[replied_by])


class CaseInquiry(Base):
    """Public intake form submission"""
    __tablename__ = "case_inquiries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    emirates_id = Column(String(100), nullable=True)
    case_type = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    urgency = Column(SQLEnum(InquiryUrgency), nullable=False, default=InquiryUrgency.medium)
    documents = Column(JSON, nullable=True)
    consultation_preference = Column(SQLEnum(ConsultationPreference), nullable=True)
    preferred_date = Column(TIMESTAMP, nullable=True)
    status = Column(SQLEnum(InquiryStatus), nullable=False, default=InquiryStatus.pending)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
