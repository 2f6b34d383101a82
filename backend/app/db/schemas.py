"""
Pydantic validation schemas
"""
from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator
from typing import Annotated, Optional, List, Dict, Any
from datetime import date, datetime, time
from datetime import date as date_type
from decimal import Decimal
from uuid import UUID

from app.core.constants import MAX_PASSWORD_BYTES, MIN_PASSWORD_LENGTH
from app.db.models import (
    ApprovalStatus,
    CaseStatus,
    ConsultationStatus,
    ConsultationType,
    InquiryStatus,
    JailType,
    MessagePriority,
    UrgencyLevel,
    UserRole,
    YesNo,
)

# ============================================================================
# Auth Schemas
# ============================================================================

def check_password_bytes(v: Optional[str]) -> Optional[str]:
    if isinstance(v, str) and len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


Password = Annotated[str, AfterValidator(check_password_bytes)]


class UserLogin(BaseModel):
    """Login schema"""
    email: str = Field(..., min_length=1)
    password: Password = Field(..., min_length=1)


class TwoFactorLoginRequest(BaseModel):
    pending_token: str = Field(..., min_length=1)
    code: str = Field(..., min_length=6, max_length=8)


class TwoFactorCodeRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=8)


class UserRegister(BaseModel):
    """Registration schema"""
    email: EmailStr
    password: Password = Field(..., min_length=MIN_PASSWORD_LENGTH)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1)
    role: Optional[UserRole] = None


class OTPRequest(BaseModel):
    phone: str = Field(..., min_length=4)


class OTPVerifyRequest(BaseModel):
    session_id: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=4, max_length=8)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    """Forgot password - request reset link"""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Reset password with token from email"""
    token: str = Field(..., min_length=1)
    new_password: Password


class PasswordResetRequestCreate(BaseModel):
    email: EmailStr


class PasswordResetReject(BaseModel):
    reason: Optional[str] = None


# ============================================================================
# User Schemas
# ============================================================================

class ClientProfileFields(BaseModel):
    nationality: Optional[str] = None
    emirates_id: Optional[str] = None
    whatsapp_number: Optional[str] = None
    landline_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    company_name: Optional[str] = None
    company_email: Optional[str] = None
    company_phone: Optional[str] = None
    company_address: Optional[str] = None
    occupation: Optional[str] = None
    employer_name: Optional[str] = None
    notes: Optional[str] = None


CLIENT_PROFILE_FIELDS = tuple(ClientProfileFields.model_fields.keys())


class UserCreate(ClientProfileFields):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1)
    role: UserRole
    password: Optional[Password] = None
    client_number: Optional[str] = None
    assigned_emirates: Optional[List[str]] = None
    specializations: Optional[List[str]] = None
    permissions: Optional[Dict[str, Any]] = None


class UserUpdate(ClientProfileFields):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    client_number: Optional[str] = None
    assigned_emirates: Optional[List[str]] = None
    specializations: Optional[List[str]] = None
    permissions: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


# Fields only a super admin may change on a user record.
ADMIN_ONLY_USER_FIELDS = ("is_active", "assigned_emirates", "specializations", "permissions", "client_number")


class AssignEmiratesRequest(BaseModel):
    emirates: Any = None


class AdminPasswordReset(BaseModel):
    new_password: Password


class ChangePasswordRequest(BaseModel):
    current_password: Password = Field(..., min_length=1)
    new_password: Password


class ClientImportRow(ClientProfileFields):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    client_number: Optional[str] = None
    case_number: Optional[str] = None
    is_active: Any = None


# ============================================================================
# Case Schemas
# ============================================================================

class CaseFields(BaseModel):
    """Columns a caller may set on a case"""
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    emirates_id: Optional[str] = None
    nationality: Optional[str] = None
    whatsapp_number: Optional[str] = None
    landline_number: Optional[str] = None
    company_address: Optional[str] = None
    company_number: Optional[str] = None
    company_email: Optional[str] = None
    occupation: Optional[List[str]] = None
    employer_name: Optional[str] = None
    employer_number: Optional[str] = None
    employer_address: Optional[str] = None
    salary: Optional[Decimal] = None
    last_day_of_work: Optional[datetime] = None
    still_on_duty: Optional[YesNo] = None
    work_period_start: Optional[datetime] = None
    work_period_end: Optional[datetime] = None
    family_member_name: Optional[str] = None
    family_member_number: Optional[str] = None
    friend_name: Optional[str] = None
    friend_number: Optional[str] = None
    case_type: Optional[str] = None
    case_category: Optional[str] = None
    case_sub_category: Optional[str] = None
    emirate: Optional[str] = None
    court_area: Optional[str] = None
    description: Optional[str] = None
    urgency_level: Optional[UrgencyLevel] = None
    status: Optional[CaseStatus] = None
    approval_status: Optional[ApprovalStatus] = None
    hearing_date: Optional[datetime] = None
    next_hearing_date: Optional[datetime] = None
    estimated_cost: Optional[Decimal] = None
    notes: Optional[str] = None
    reference_source: Optional[str] = None
    reference_other_details: Optional[str] = None
    region_group: Optional[str] = None
    title: Optional[str] = None
    signature: Optional[str] = None
    jail_visiting: Optional[bool] = None
    date_of_endorsement: Optional[date] = None
    jail_name: Optional[str] = None
    date_of_arrest: Optional[date] = None
    report_number: Optional[str] = None
    date_of_visiting: Optional[date] = None
    counsellor_id: Optional[UUID] = None
    lawyer_id: Optional[UUID] = None


class CaseRegister(CaseFields):
    client_mobile: Optional[str] = None
    # Client profile extras, stored on the client user
    company_name: Optional[str] = None
    company_phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None


class CaseUpdate(CaseFields):
    """Nested collections are managed through their own endpoints."""
    tracking_records: Optional[Any] = None
    expenses: Optional[Any] = None
    payments: Optional[Any] = None


class AssignLawyerRequest(BaseModel):
    lawyer_id: UUID


class CaseStatusUpdate(BaseModel):
    status: str


class CaseNoteCreate(BaseModel):
    note: str = Field(..., min_length=1)


class TrackingEntry(BaseModel):
    next_hearing: Optional[date] = None
    reason: Optional[str] = None
    action_required: Optional[str] = None
    date_of_action_required: Optional[date] = None
    work_undertaken: Optional[str] = None
    other: Optional[str] = None
    staff_name: Optional[str] = None


class ExpenseIn(BaseModel):
    date: Optional[date_type] = None
    expense: Optional[str] = None
    amount: Optional[Decimal] = None


class CasePaymentIn(BaseModel):
    date: Optional[datetime] = None
    payment_type: Optional[str] = None
    cheque_number: Optional[str] = None
    cheque_date: Optional[str] = None
    bank: Optional[str] = None
    amount: Optional[Decimal] = None
    being: Optional[str] = None


# ============================================================================
# Payment / Consultation Schemas
# ============================================================================

class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    currency: str = "AED"
    payment_method: Optional[str] = None
    case_id: Optional[UUID] = None
    consultation_id: Optional[UUID] = None
    transaction_id: Optional[str] = None
    gateway_response: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None


class ConsultationCreate(BaseModel):
    type: ConsultationType = ConsultationType.in_person
    scheduled_date: Optional[datetime] = None
    duration: int = Field(60, ge=15, le=480)
    price: Optional[Decimal] = None
    client_name: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    case_id: Optional[UUID] = None


class ConsultationUpdate(BaseModel):
    type: Optional[ConsultationType] = None
    status: Optional[ConsultationStatus] = None
    scheduled_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=15, le=480)
    price: Optional[Decimal] = None
    counsellor_id: Optional[UUID] = None
    lawyer_id: Optional[UUID] = None
    case_id: Optional[UUID] = None
    notes: Optional[str] = None
    outcome_notes: Optional[str] = None


# ============================================================================
# Notification / Setting / Subscription Schemas
# ============================================================================

class SMSRequest(BaseModel):
    user_id: Optional[UUID] = None
    phone: str = Field(..., min_length=4)
    message: str = Field(..., min_length=1)


class EmailNotificationRequest(BaseModel):
    user_id: Optional[UUID] = None
    email: EmailStr
    subject: str = Field(..., min_length=1)
    html: str = Field(..., min_length=1)


class SettingUpdate(BaseModel):
    value: Any = None
    category: Optional[str] = None
    description: Optional[str] = None


class SubscribeRequest(BaseModel):
    email: Optional[EmailStr] = None
    user_id: Optional[UUID] = None
    source: Optional[str] = None


class UnsubscribeRequest(BaseModel):
    id: Optional[int] = None
    email: Optional[EmailStr] = None


# ============================================================================
# Taxonomy Schemas
# ============================================================================

class CaseTypeCreate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None


class CaseTypeUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    is_active: Optional[bool] = None


class CaseCategoryCreate(BaseModel):
    name: Optional[str] = None
    case_type_id: Optional[UUID] = None


class CaseCategoryUpdate(BaseModel):
    name: Optional[str] = None
    case_type_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class CaseSubCategoryCreate(BaseModel):
    name: Optional[str] = None
    category_id: Optional[UUID] = None


class CaseSubCategoryUpdate(BaseModel):
    name: Optional[str] = None
    category_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class OccupationTypeCreate(BaseModel):
    name: Optional[str] = None


class OccupationTypeUpdate(BaseModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None


class OccupationSubTypeCreate(BaseModel):
    name: Optional[str] = None
    occupation_type_id: Optional[UUID] = None


class OccupationSubTypeUpdate(BaseModel):
    name: Optional[str] = None
    occupation_type_id: Optional[UUID] = None
    is_active: Optional[bool] = None


# ============================================================================
# Detention Schemas
# ============================================================================

class PoliceStationCreate(BaseModel):
    name: Optional[str] = None
    emirate: Optional[str] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    officer_in_charge: Optional[str] = None


class PoliceStationUpdate(BaseModel):
    name: Optional[str] = None
    emirate: Optional[str] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    officer_in_charge: Optional[str] = None
    is_active: Optional[bool] = None


class PoliceStationImport(BaseModel):
    data: Any = None
    format: str = "json"


class JailCreate(BaseModel):
    name: Optional[str] = None
    police_station_id: Optional[UUID] = None
    jail_type: Optional[JailType] = None
    capacity: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class JailUpdate(BaseModel):
    name: Optional[str] = None
    police_station_id: Optional[UUID] = None
    jail_type: Optional[JailType] = None
    capacity: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class JailVisitCreate(BaseModel):
    case_number: Optional[str] = None
    accused_name: Optional[str] = None
    jail_id: Optional[UUID] = None
    requested_date: Optional[date] = None
    requested_time: Optional[time] = None
    reason: Optional[str] = None


class ReviewDecision(BaseModel):
    """Status decision on a jail visit or court quotation"""
    status: str
    remarks: Optional[str] = None
    rejection_reason: Optional[str] = None


class CourtQuotationCreate(BaseModel):
    case_number: Optional[str] = None
    emirate: Optional[str] = None
    court: Optional[str] = None
    client_name: Optional[str] = None
    client_contact: Optional[str] = None
    fee_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    attachments: Optional[List[Dict[str, Any]]] = None


# ============================================================================
# Message / Inquiry Schemas
# ============================================================================

class MessageCreate(BaseModel):
    subject: Optional[str] = None
    message: Optional[str] = None
    priority: MessagePriority = MessagePriority.medium


class MessageReply(BaseModel):
    admin_reply: Optional[str] = None


class MessageStatusUpdate(BaseModel):
    status: str


class InquiryStatusUpdate(BaseModel):
    status: Optional[InquiryStatus] = None
    admin_notes: Optional[str] = None

    @field_validator("admin_notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v
