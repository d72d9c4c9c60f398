"""
Shared Pydantic schemas used across the application.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, EmailStr

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

StaffRole = Literal["SUPERADMIN", "ADMIN", "KITCHEN", "WAITER"]
OrderStatusValue = Literal["ORDERED", "PREPARING", "PREPARED_WAITING", "SERVED", "COMPLETED", "CANCELLED"]
PaymentMethodValue = Literal["CASH", "CARD", "ONLINE"]


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str


class UserInfo(BaseModel):
    """Authenticated staff user, as returned next to a token."""

    id: int
    email: str
    role: str
    restaurant_id: int
    branch_id: int | None = None
    display_name: str | None = None
    permissions: list[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    token: str
    token_type: str = "bearer"
    user: UserInfo
    landing_path: str


class PrincipalOutput(BaseModel):
    id: str | None
    role: str
    restaurant_id: int | None
    branch_id: int | None
    permissions: list[str]
    email: str | None = None
    session_id: int | None = None
    table_id: int | None = None


class MeResponse(BaseModel):
    """Current principal plus client hints."""

    principal: PrincipalOutput
    landing_path: str
    order_poll_interval_seconds: int
    session_poll_interval_seconds: int


class LogoutResponse(BaseModel):
    success: bool
    message: str


class DeviceTokenRequest(BaseModel):
    """Issue a bearer token for a kitchen or waiter account."""

    user_id: int


class DeviceTokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


# =============================================================================
# Session Schemas
# =============================================================================


class StartSessionRequest(BaseModel):
    table_id: int


class JoinSessionRequest(BaseModel):
    table_id: int


class SessionOutput(BaseModel):
    """A dining session."""

    id: int
    restaurant_id: int
    branch_id: int
    table_id: int
    is_active: bool
    started_at: datetime
    ended_at: datetime | None = None

    class Config:
        from_attributes = True


class SessionTokenResponse(BaseModel):
    """Session plus the table token binding the caller to it."""

    session: SessionOutput
    table_token: str
    is_owner: bool


# =============================================================================
# Order Schemas
# =============================================================================


class OrderItemInput(BaseModel):
    """Input for a single order line."""

    menu_item_id: int
    quantity: int = Field(ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class CreateOrderRequest(BaseModel):
    """Request to place an order in a session. An empty list is rejected as EmptyOrder."""

    session_id: int
    items: list[OrderItemInput] = Field(default_factory=list, max_length=Limits.MAX_ITEMS_PER_ORDER)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class UpdateOrderRequest(BaseModel):
    """Status transition carrying the version the caller last observed."""

    status: OrderStatusValue
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    expected_version: int = Field(ge=1)


class OrderItemOutput(BaseModel):
    id: int
    menu_item_id: int
    item_name: str
    quantity: int
    unit_price_cents: int
    notes: str | None = None

    class Config:
        from_attributes = True


class OrderOutput(BaseModel):
    """An order with its items."""

    id: int
    restaurant_id: int
    branch_id: int
    session_id: int
    status: str
    total_amount_cents: int
    notes: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime | None = None
    items: list[OrderItemOutput] = Field(default_factory=list)

    class Config:
        from_attributes = True


class OrderLogOutput(BaseModel):
    id: int
    order_id: int
    status: str
    acting_user_id: int | None = None
    timestamp: datetime
    notes: str | None = None

    class Config:
        from_attributes = True


# =============================================================================
# Payment Schemas
# =============================================================================


class RecordPaymentRequest(BaseModel):
    order_id: int
    amount_cents: int
    method: PaymentMethodValue
    external_reference: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)


class SettlePaymentRequest(BaseModel):
    external_reference: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)


class PaymentOutput(BaseModel):
    id: int
    order_id: int
    amount_cents: int
    method: str
    status: str
    external_reference: str | None = None
    settled_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Tenant Directory Schemas
# =============================================================================


class RestaurantOutput(BaseModel):
    id: int
    name: str
    owner_super_admin_id: int | None = None
    timezone: str
    currency: str

    class Config:
        from_attributes = True


class RestaurantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    timezone: str | None = Field(default=None, max_length=64)
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class BranchOutput(BaseModel):
    id: int
    restaurant_id: int
    name: str
    admin_user_id: int | None = None
    is_active: bool

    class Config:
        from_attributes = True


class BranchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)


class BranchUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)


class AssignAdminRequest(BaseModel):
    user_id: int


class TableOutput(BaseModel):
    id: int
    restaurant_id: int
    branch_id: int
    table_number: int
    seat_count: int
    active: bool

    class Config:
        from_attributes = True


class TableCreate(BaseModel):
    branch_id: int
    table_number: int = Field(ge=1)
    seat_count: int = Field(default=4, ge=1, le=Limits.MAX_SEAT_COUNT)
    active: bool = True


class TableUpdate(BaseModel):
    table_number: int | None = Field(default=None, ge=1)
    seat_count: int | None = Field(default=None, ge=1, le=Limits.MAX_SEAT_COUNT)
    active: bool | None = None


class MenuItemOutput(BaseModel):
    """Menu item; ``is_available`` is the effective availability for the requested branch."""

    id: int
    restaurant_id: int
    branch_id: int | None = None
    name: str
    description: str | None = None
    price_cents: int
    category: str
    is_available: bool

    class Config:
        from_attributes = True


class MenuItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    price_cents: int = Field(ge=Limits.MIN_PRICE_CENTS, le=Limits.MAX_PRICE_CENTS)
    category: str = Field(default="General", min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    branch_id: int | None = None
    is_available: bool = True


class MenuItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    price_cents: int | None = Field(default=None, ge=Limits.MIN_PRICE_CENTS, le=Limits.MAX_PRICE_CENTS)
    category: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    is_available: bool | None = None


class AvailabilityOverrideRequest(BaseModel):
    is_available: bool


class StaffOutput(BaseModel):
    id: int
    restaurant_id: int
    branch_id: int | None = None
    email: str
    display_name: str | None = None
    role: str
    permissions: list[str] = Field(default_factory=list)
    is_active: bool

    class Config:
        from_attributes = True


class StaffCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)
    display_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    role: StaffRole
    branch_id: int | None = None
    permissions: list[str] = Field(default_factory=list)


class StaffUpdate(BaseModel):
    display_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    role: StaffRole | None = None
    branch_id: int | None = None
    permissions: list[str] | None = None
    password: str | None = Field(default=None, min_length=Limits.MIN_PASSWORD_LENGTH)


# =============================================================================
# Report Schemas
# =============================================================================


class BranchReport(BaseModel):
    """Operational summary of a branch."""

    branch_id: int
    total_orders: int
    total_revenue_cents: int
    active_sessions: int
    average_order_value_cents: int
    orders_by_status: dict[str, int]


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: ErrorDetail
