"""FastAPI routes for the dispatch domain."""

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from dispatch.api.schemas import (
    AssignRequest,
    AuthorizeRequest,
    AutoAssignmentRequest,
    AutoAssignmentResponse,
    BulkFailureResponse,
    BulkRequest,
    BulkResponse,
    CancelRequest,
    CreateDeliveryRequest,
    DeliveryListResponse,
    DeliveryResponse,
    PaymentRequest,
    PricingRequest,
    PricingResponse,
    RegisterRiderRequest,
    RiderDeliveriesResponse,
    RiderIdResponse,
    RiderResponse,
    RiderStatusRequest,
    RiderUpdatesRequest,
    SettingsResponse,
    SlaReportResponse,
    SlaRequest,
    SlaThresholdsResponse,
    StatusChangeRequest,
    StatusResponse,
)
from dispatch.bulk.coordinator import BulkCoordinator, BulkOperation, BulkResult
from dispatch.delivery import transitions
from dispatch.delivery.creation import create_delivery
from dispatch.delivery.payment import record_payment
from dispatch.delivery.persistence import load_delivery
from dispatch.delivery.queries import deliveries_for_customer, list_deliveries
from dispatch.delivery.rider_updates import RiderUpdate, apply_rider_updates, rider_deliveries
from dispatch.reporting.financials import financial_overview, revenue_trends, rider_financials
from dispatch.rider.availability import ChangeRiderStatus, DesignateDefaultRider
from dispatch.rider.directory import list_riders, load_rider
from dispatch.rider.registration import RegisterRider
from dispatch.settings.management import UpdateAutoAssignment, UpdatePricing, UpdateSlaThresholds
from dispatch.settings.platform import load_settings
from dispatch.sla.evaluator import breached_deliveries, evaluate_sla


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------
def delivery_out(delivery) -> DeliveryResponse:
    return DeliveryResponse(
        id=str(delivery.id),
        name=delivery.customer_name,
        contact=delivery.contact,
        user_email=delivery.user_email,
        item_description=delivery.item_description,
        pickup_point=delivery.pickup_point,
        dropoff_point=delivery.dropoff_point,
        notes=delivery.notes,
        delivery_type=delivery.delivery_type,
        status=delivery.status,
        authorized_by=delivery.authorized_by,
        authorized_at=delivery.authorized_at,
        assigned_rider_id=str(delivery.assigned_rider_id) if delivery.assigned_rider_id else None,
        assigned_rider_name=delivery.assigned_rider_name,
        assigned_at=delivery.assigned_at,
        started_at=delivery.started_at,
        delivered_at=delivery.delivered_at,
        cancelled_at=delivery.cancelled_at,
        cancellation_reason=delivery.cancellation_reason,
        price=delivery.price,
        rider_commission=delivery.rider_commission,
        platform_revenue=delivery.platform_revenue,
        payment_status=delivery.payment_status,
        payment_method=delivery.payment_method,
        paid_at=delivery.paid_at,
        created_at=delivery.created_at,
        updated_at=delivery.updated_at,
    )


def rider_out(rider) -> RiderResponse:
    return RiderResponse(
        id=str(rider.id),
        name=rider.name,
        phone=rider.phone,
        whatsapp=rider.whatsapp,
        rider_code=rider.rider_code,
        status=rider.status,
        is_default_delivery_rider=bool(rider.is_default_delivery_rider),
        created_at=rider.created_at,
    )


def bulk_out(result: BulkResult) -> BulkResponse:
    return BulkResponse(
        success=result.success,
        message=result.summary(),
        operation=result.operation,
        total=result.total,
        succeeded=result.succeeded,
        failed=[BulkFailureResponse(**failure.to_dict()) for failure in result.failed],
    )


def settings_out(settings) -> SettingsResponse:
    pricing, rules, sla = settings.pricing, settings.auto_assignment, settings.sla
    return SettingsResponse(
        currency=settings.currency,
        pricing=PricingResponse(
            instant=pricing.instant,
            next_day=pricing.next_day,
            weekly_station=pricing.weekly_station,
        ),
        auto_assignment=AutoAssignmentResponse(
            enabled=bool(rules.enabled),
            assign_to_default_rider=bool(rules.assign_to_default_rider),
            balance_workload=bool(rules.balance_workload),
            consider_location=bool(rules.consider_location),
            max_deliveries_per_rider=rules.max_deliveries_per_rider,
        ),
        sla=SlaThresholdsResponse(
            pending_to_authorized=sla.pending_to_authorized,
            authorized_to_assigned=sla.authorized_to_assigned,
            assigned_to_in_progress=sla.assigned_to_in_progress,
            in_progress_to_delivered=sla.in_progress_to_delivered,
            instant_delivery_max=sla.instant_delivery_max,
            next_day_delivery_max=sla.next_day_delivery_max,
            weekly_station_delivery_max=sla.weekly_station_delivery_max,
        ),
        updated_by=settings.updated_by,
        updated_at=settings.updated_at,
    )


# ---------------------------------------------------------------------------
# Delivery Router
# ---------------------------------------------------------------------------
delivery_router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@delivery_router.post("", status_code=201, response_model=DeliveryResponse)
async def request_delivery(body: CreateDeliveryRequest) -> DeliveryResponse:
    """Create a pending delivery priced from the current platform pricing."""
    delivery = create_delivery(
        customer_name=body.name,
        contact=body.contact,
        user_email=body.user_email,
        item_description=body.item_description,
        pickup_point=body.pickup_point,
        dropoff_point=body.dropoff_point,
        delivery_type=body.delivery_type,
        notes=body.notes,
    )
    return delivery_out(delivery)


@delivery_router.get("", response_model=DeliveryListResponse)
async def get_deliveries(status: str | None = None, delivery_type: str | None = None) -> DeliveryListResponse:
    deliveries = list_deliveries(status=status, delivery_type=delivery_type)
    return DeliveryListResponse(count=len(deliveries), deliveries=[delivery_out(d) for d in deliveries])


@delivery_router.get("/sla/breaches", response_model=list[SlaReportResponse])
async def get_sla_breaches() -> list[SlaReportResponse]:
    """SLA reports for open deliveries that are over a limit."""
    return [SlaReportResponse(**report.to_dict()) for report in breached_deliveries()]


@delivery_router.get("/customer/{email}", response_model=DeliveryListResponse)
async def get_customer_deliveries(email: str) -> DeliveryListResponse:
    deliveries = deliveries_for_customer(email)
    return DeliveryListResponse(count=len(deliveries), deliveries=[delivery_out(d) for d in deliveries])


@delivery_router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery(delivery_id: str) -> DeliveryResponse:
    return delivery_out(load_delivery(delivery_id))


@delivery_router.get("/{delivery_id}/sla", response_model=SlaReportResponse)
async def get_delivery_sla(delivery_id: str) -> SlaReportResponse:
    return SlaReportResponse(**evaluate_sla(delivery_id).to_dict())


@delivery_router.put("/{delivery_id}/status", response_model=DeliveryResponse)
async def change_status(delivery_id: str, body: StatusChangeRequest) -> DeliveryResponse:
    """Move a delivery along the lifecycle (any edge of the status graph)."""
    delivery = transitions.transition(
        delivery_id,
        body.status,
        actor=body.actor,
        rider_id=body.rider_id,
        reason=body.reason,
    )
    return delivery_out(delivery)


@delivery_router.put("/{delivery_id}/authorize", response_model=DeliveryResponse)
async def authorize_delivery(delivery_id: str, body: AuthorizeRequest) -> DeliveryResponse:
    return delivery_out(transitions.authorize(delivery_id, body.actor))


@delivery_router.put("/{delivery_id}/assign", response_model=DeliveryResponse)
async def assign_delivery(delivery_id: str, body: AssignRequest) -> DeliveryResponse:
    """Assign a rider: the named one, or whoever the auto-assignment rules pick."""
    delivery = transitions.assign(delivery_id, actor=body.actor, rider_id=body.rider_id, strategy=body.strategy)
    return delivery_out(delivery)


@delivery_router.put("/{delivery_id}/assign-default", response_model=DeliveryResponse)
async def assign_default_rider(delivery_id: str, body: AssignRequest | None = None) -> DeliveryResponse:
    """Quick-assign to the default delivery rider."""
    actor = body.actor if body else None
    return delivery_out(transitions.assign(delivery_id, actor=actor, strategy="default"))


@delivery_router.put("/{delivery_id}/release", response_model=DeliveryResponse)
async def release_rider(delivery_id: str, body: CancelRequest | None = None) -> DeliveryResponse:
    """Take the rider off an assigned delivery so it can be re-assigned."""
    actor = body.actor if body else None
    return delivery_out(transitions.release(delivery_id, actor=actor))


@delivery_router.put("/{delivery_id}/cancel", response_model=DeliveryResponse)
async def cancel_delivery(delivery_id: str, body: CancelRequest | None = None) -> DeliveryResponse:
    actor = body.actor if body else None
    reason = body.reason if body else None
    return delivery_out(transitions.cancel(delivery_id, actor=actor, reason=reason))


@delivery_router.put("/{delivery_id}/payment", response_model=DeliveryResponse)
async def update_payment(delivery_id: str, body: PaymentRequest) -> DeliveryResponse:
    """Write back a payment status from the payment flow."""
    return delivery_out(record_payment(delivery_id, body.payment_status, body.payment_method))


# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------
def _run_bulk(operation: BulkOperation, body: BulkRequest) -> BulkResponse:
    result = BulkCoordinator().apply(
        body.delivery_ids,
        operation,
        actor=body.actor,
        rider_id=body.rider_id,
        strategy=body.strategy,
        status=body.status,
        reason=body.reason,
    )
    return bulk_out(result)


@delivery_router.post("/bulk/authorize", response_model=BulkResponse)
async def bulk_authorize(body: BulkRequest) -> BulkResponse:
    return _run_bulk(BulkOperation.AUTHORIZE, body)


@delivery_router.post("/bulk/assign", response_model=BulkResponse)
async def bulk_assign(body: BulkRequest) -> BulkResponse:
    return _run_bulk(BulkOperation.ASSIGN, body)


@delivery_router.post("/bulk/status", response_model=BulkResponse)
async def bulk_status(body: BulkRequest) -> BulkResponse:
    return _run_bulk(BulkOperation.SET_STATUS, body)


@delivery_router.post("/bulk/cancel", response_model=BulkResponse)
async def bulk_cancel(body: BulkRequest) -> BulkResponse:
    return _run_bulk(BulkOperation.CANCEL, body)


# ---------------------------------------------------------------------------
# Rider Router
# ---------------------------------------------------------------------------
rider_router = APIRouter(prefix="/riders", tags=["riders"])


@rider_router.post("", status_code=201, response_model=RiderIdResponse)
async def register_rider(body: RegisterRiderRequest) -> RiderIdResponse:
    command = RegisterRider(
        name=body.name,
        phone=body.phone,
        whatsapp=body.whatsapp,
        rider_code=body.rider_code,
    )
    result = current_domain.process(command, asynchronous=False)
    return RiderIdResponse(rider_id=result)


@rider_router.get("", response_model=list[RiderResponse])
async def get_riders(status: str | None = None) -> list[RiderResponse]:
    riders = list_riders(status=status) if status else list_riders()
    return [rider_out(rider) for rider in riders]


@rider_router.get("/{rider_id}", response_model=RiderResponse)
async def get_rider(rider_id: str) -> RiderResponse:
    return rider_out(load_rider(rider_id))


@rider_router.put("/{rider_id}/status", response_model=StatusResponse)
async def change_rider_status(rider_id: str, body: RiderStatusRequest) -> StatusResponse:
    current_domain.process(ChangeRiderStatus(rider_id=rider_id, status=body.status), asynchronous=False)
    return StatusResponse(status=body.status)


@rider_router.put("/{rider_id}/default", response_model=StatusResponse)
async def designate_default_rider(rider_id: str) -> StatusResponse:
    current_domain.process(DesignateDefaultRider(rider_id=rider_id), asynchronous=False)
    return StatusResponse(status="default_rider_designated")


@rider_router.get("/code/{rider_code}/deliveries", response_model=RiderDeliveriesResponse)
async def get_rider_deliveries(rider_code: str) -> RiderDeliveriesResponse:
    """A rider's own deliveries, looked up by their rider code."""
    rider, deliveries = rider_deliveries(rider_code)
    return RiderDeliveriesResponse(rider=rider_out(rider), deliveries=[delivery_out(d) for d in deliveries])


@rider_router.post("/code/{rider_code}/updates", response_model=BulkResponse)
async def submit_rider_updates(rider_code: str, body: RiderUpdatesRequest) -> BulkResponse:
    updates = [RiderUpdate(delivery_id=u.delivery_id, status=u.status, notes=u.notes) for u in body.updates]
    return bulk_out(apply_rider_updates(rider_code, updates))


# ---------------------------------------------------------------------------
# Settings Router
# ---------------------------------------------------------------------------
settings_router = APIRouter(prefix="/settings", tags=["settings"])


@settings_router.get("", response_model=SettingsResponse)
async def get_settings() -> SettingsResponse:
    return settings_out(load_settings())


@settings_router.put("/pricing", response_model=SettingsResponse)
async def update_pricing(body: PricingRequest) -> SettingsResponse:
    current_domain.process(UpdatePricing(**body.model_dump(exclude_none=True)), asynchronous=False)
    return settings_out(load_settings())


@settings_router.put("/auto-assignment", response_model=SettingsResponse)
async def update_auto_assignment(body: AutoAssignmentRequest) -> SettingsResponse:
    current_domain.process(UpdateAutoAssignment(**body.model_dump(exclude_none=True)), asynchronous=False)
    return settings_out(load_settings())


@settings_router.put("/sla", response_model=SettingsResponse)
async def update_sla(body: SlaRequest) -> SettingsResponse:
    current_domain.process(UpdateSlaThresholds(**body.model_dump(exclude_none=True)), asynchronous=False)
    return settings_out(load_settings())


# ---------------------------------------------------------------------------
# Financials Router
# ---------------------------------------------------------------------------
financials_router = APIRouter(prefix="/financials", tags=["financials"])


@financials_router.get("/overview")
async def get_financial_overview(period: str = "today") -> dict:
    return financial_overview(period)


@financials_router.get("/riders")
async def get_rider_financials(period: str = "month") -> dict:
    return rider_financials(period)


@financials_router.get("/trends")
async def get_revenue_trends(days: int = Query(default=7, ge=1, le=366)) -> dict:
    return revenue_trends(days)
