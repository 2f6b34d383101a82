"""
Main API router aggregator
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    users,
    cases,
    case_tracking,
    case_expenses,
    case_payments,
    payments,
    documents,
    consultations,
    dashboard,
    notifications,
    system_settings,
    subscription,
    case_types,
    work_occupations,
    police_stations,
    jails,
    jail_visits,
    court_quotations,
    messages,
    case_inquiries,
    health,
)

api_router = APIRouter()

# Accounts
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])

# Cases and everything hanging off /cases/{case_id}
api_router.include_router(cases.router, prefix="/cases", tags=["Cases"])
api_router.include_router(case_tracking.router, prefix="/cases", tags=["Case Tracking"])
api_router.include_router(case_expenses.router, prefix="/cases", tags=["Case Expenses"])
api_router.include_router(case_payments.router, prefix="/cases", tags=["Case Payments"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(consultations.router, prefix="/consultations", tags=["Consultations"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])

# Communication
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(messages.router, prefix="/messages", tags=["Messages"])
api_router.include_router(case_inquiries.router, prefix="/case-inquiries", tags=["Case Inquiries"])
api_router.include_router(subscription.router, prefix="/subscriptions", tags=["Subscriptions"])

# Reference data
api_router.include_router(system_settings.router, prefix="/settings", tags=["Settings"])
api_router.include_router(case_types.types_router, prefix="/case-types", tags=["Case Types"])
api_router.include_router(case_types.categories_router, prefix="/case-categories", tags=["Case Types"])
api_router.include_router(case_types.sub_categories_router, prefix="/case-sub-categories", tags=["Case Types"])
api_router.include_router(case_types.export_router, prefix="/export", tags=["Export"])
api_router.include_router(case_types.import_router, prefix="/import", tags=["Import"])
api_router.include_router(work_occupations.router, prefix="/work-occupations", tags=["Work Occupations"])

# Detention
api_router.include_router(police_stations.router, prefix="/police-stations", tags=["Police Stations"])
api_router.include_router(jails.router, prefix="/jails", tags=["Jails"])
api_router.include_router(jail_visits.router, prefix="/jail-visits", tags=["Jail Visits"])
api_router.include_router(court_quotations.router, prefix="/court-quotations", tags=["Court Quotations"])

api_router.include_router(health.router, prefix="/health", tags=["Health"])
