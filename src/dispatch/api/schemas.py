"""Pydantic API schemas for the dispatch domain.

These are the external API contracts, separate from domain commands. The
routes translate between these schemas and the domain services.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class CreateDeliveryRequest(BaseModel):
    name: str
    contact: str
    user_email: str | None = None
    item_description: str
    pickup_point: str
    dropoff_point: str
    delivery_type: str
    notes: str | None = None


class AuthorizeRequest(BaseModel):
    actor: str


class AssignRequest(BaseModel):
    actor: str | None = None
    rider_id: str | None = None
    strategy: str | None = None


class StatusChangeRequest(BaseModel):
    status: str
    actor: str | None = None
    rider_id: str | None = None
    reason: str | None = None


class CancelRequest(BaseModel):
    actor: str | None = None
    reason: str | None = None


class PaymentRequest(BaseModel):
    payment_status: str
    payment_method: str | None = None


class BulkRequest(BaseModel):
    delivery_ids: list[str] = Field(default_factory=list)
    actor: str | None = None
    rider_id: str | None = None
    strategy: str | None = None
    status: str | None = None
    reason: str | None = None


class RegisterRiderRequest(BaseModel):
    name: str
    phone: str
    whatsapp: str | None = None
    rider_code: str | None = None


class RiderStatusRequest(BaseModel):
    status: str


class RiderUpdateItem(BaseModel):
    delivery_id: str
    status: str
    notes: str | None = None


class RiderUpdatesRequest(BaseModel):
    updates: list[RiderUpdateItem]


class PricingRequest(BaseModel):
    instant: float | None = None
    next_day: float | None = None
    weekly_station: float | None = None
    updated_by: str | None = None


class AutoAssignmentRequest(BaseModel):
    enabled: bool | None = None
    assign_to_default_rider: bool | None = None
    balance_workload: bool | None = None
    consider_location: bool | None = None
    max_deliveries_per_rider: int | None = None
    updated_by: str | None = None


class SlaRequest(BaseModel):
    pending_to_authorized: int | None = None
    authorized_to_assigned: int | None = None
    assigned_to_in_progress: int | None = None
    in_progress_to_delivered: int | None = None
    instant_delivery_max: int | None = None
    next_day_delivery_max: int | None = None
    weekly_station_delivery_max: int | None = None
    updated_by: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class DeliveryResponse(BaseModel):
    id: str
    name: str
    contact: str
    user_email: str | None = None
    item_description: str
    pickup_point: str
    dropoff_point: str
    notes: str | None = None
    delivery_type: str
    status: str
    authorized_by: str | None = None
    authorized_at: datetime | None = None
    assigned_rider_id: str | None = None
    assigned_rider_name: str | None = None
    assigned_at: datetime | None = None
    started_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    price: float
    rider_commission: float
    platform_revenue: float
    payment_status: str
    payment_method: str | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DeliveryListResponse(BaseModel):
    count: int
    deliveries: list[DeliveryResponse]


class BulkFailureResponse(BaseModel):
    id: str
    error: str
    message: str


class BulkResponse(BaseModel):
    success: bool
    message: str
    operation: str
    total: int
    succeeded: list[str]
    failed: list[BulkFailureResponse]


class StageSlaResponse(BaseModel):
    stage: str
    elapsed_minutes: float
    threshold_minutes: int | None = None
    breached: bool
    open: bool


class SlaReportResponse(BaseModel):
    delivery_id: str
    delivery_type: str
    status: str
    evaluated_at: datetime
    breached: bool
    stages: list[StageSlaResponse]
    overall: StageSlaResponse


class RiderResponse(BaseModel):
    id: str
    name: str
    phone: str
    whatsapp: str | None = None
    rider_code: str
    status: str
    is_default_delivery_rider: bool
    created_at: datetime | None = None


class RiderIdResponse(BaseModel):
    rider_id: str


class RiderDeliveriesResponse(BaseModel):
    rider: RiderResponse
    deliveries: list[DeliveryResponse]


class StatusResponse(BaseModel):
    status: str


class PricingResponse(BaseModel):
    instant: float | None = None
    next_day: float | None = None
    weekly_station: float | None = None


class AutoAssignmentResponse(BaseModel):
    enabled: bool
    assign_to_default_rider: bool
    balance_workload: bool
    consider_location: bool
    max_deliveries_per_rider: int | None = None


class SlaThresholdsResponse(BaseModel):
    pending_to_authorized: int | None = None
    authorized_to_assigned: int | None = None
    assigned_to_in_progress: int | None = None
    in_progress_to_delivered: int | None = None
    instant_delivery_max: int | None = None
    next_day_delivery_max: int | None = None
    weekly_station_delivery_max: int | None = None


class SettingsResponse(BaseModel):
    currency: str | None = None
    pricing: PricingResponse
    auto_assignment: AutoAssignmentResponse
    sla: SlaThresholdsResponse
    updated_by: str | None = None
    updated_at: datetime | None = None
