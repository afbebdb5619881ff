"""Routes managing Web Push subscriptions and push sends."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from controls_dispatch.application.use_cases.dispatch import (
    FanOutDispatcher,
    StatisticsAggregator,
    bulk_operation,
    check_endpoint,
    delete_endpoint,
    list_user_endpoints,
    register_push_subscription,
    update_endpoint,
)
from controls_dispatch.config import Settings
from controls_dispatch.domain.entities import CHANNEL_PUSH
from controls_dispatch.infrastructure.channels import ChannelAdapterRegistry
from controls_dispatch.infrastructure.database import get_db
from controls_dispatch.interfaces.api.dependencies import (
    get_app_settings,
    get_channel_registry,
    get_current_user_id,
    get_dispatcher,
)
from controls_dispatch.interfaces.api.routes_helpers import http_error_for
from controls_dispatch.interfaces.api.schemas import (
    BulkOperationRequest,
    BulkOperationResultRead,
    ConnectionTestRead,
    DeliveryReportRead,
    EndpointRead,
    EndpointTestRequest,
    EndpointUpdate,
    PushSubscriptionCreate,
    SendRequest,
    SubscriptionStatsRead,
)

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key")
def read_vapid_public_key(settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    if not settings.vapid_public_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push notifications are not configured",
        )
    return {"public_key": settings.vapid_public_key}


@router.post(
    "/subscriptions",
    response_model=EndpointRead,
    status_code=status.HTTP_201_CREATED,
)
def subscribe(
    payload: PushSubscriptionCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    settings: Settings = Depends(get_app_settings),
) -> EndpointRead:
    """Register the browser subscription of the acting user."""

    try:
        subscription = register_push_subscription(
            db,
            user_id=user_id,
            endpoint=payload.endpoint,
            p256dh_key=payload.keys.p256dh,
            auth_key=payload.keys.auth,
            device_type=payload.device_type,
            device_name=payload.device_name,
            user_agent=payload.user_agent,
            categories=payload.categories,
            minimum_priority=payload.minimum_priority,
            max_subscriptions=settings.max_subscriptions_per_user,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return EndpointRead.model_validate(subscription)


@router.get("/subscriptions", response_model=list[EndpointRead])
def list_subscriptions(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> list[EndpointRead]:
    subscriptions = list_user_endpoints(db, user_id=user_id, channels=[CHANNEL_PUSH])
    return [EndpointRead.model_validate(subscription) for subscription in subscriptions]


@router.patch("/subscriptions/{endpoint_id}", response_model=EndpointRead)
def update_subscription(
    endpoint_id: int,
    payload: EndpointUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> EndpointRead:
    try:
        subscription = update_endpoint(
            db, endpoint_id=endpoint_id, changes=payload.changes(), user_id=user_id
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return EndpointRead.model_validate(subscription)


@router.delete("/subscriptions/{endpoint_id}", status_code=status.HTTP_204_NO_CONTENT)
def unsubscribe(
    endpoint_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> Response:
    if not delete_endpoint(db, endpoint_id=endpoint_id, user_id=user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Endpoint {endpoint_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/send", response_model=DeliveryReportRead)
async def send_push_notification(
    payload: SendRequest,
    dispatcher: FanOutDispatcher = Depends(get_dispatcher),
    user_id: int = Depends(get_current_user_id),
) -> DeliveryReportRead:
    """Fan a notification out to the matching push subscriptions."""

    target = payload.target.model_copy(
        update={"channels": payload.target.channels or [CHANNEL_PUSH]}
    )
    report = await dispatcher.send(
        payload.notification.to_notification(user_id=user_id), target.to_filter()
    )
    return DeliveryReportRead.model_validate(report)


@router.post("/test", response_model=ConnectionTestRead)
async def test_subscription(
    payload: EndpointTestRequest,
    db: Session = Depends(get_db),
    registry: ChannelAdapterRegistry = Depends(get_channel_registry),
    _user_id: int = Depends(get_current_user_id),
) -> ConnectionTestRead:
    result = await check_endpoint(
        db,
        registry=registry,
        endpoint_id=payload.endpoint_id,
        channel=payload.channel,
        url=payload.url,
    )
    return ConnectionTestRead.model_validate(result)


@router.post("/bulk", response_model=BulkOperationResultRead)
async def run_bulk_operation(
    payload: BulkOperationRequest,
    db: Session = Depends(get_db),
    dispatcher: FanOutDispatcher = Depends(get_dispatcher),
    user_id: int = Depends(get_current_user_id),
) -> BulkOperationResultRead:
    result = await bulk_operation(
        db,
        operation=payload.operation,
        endpoint_ids=payload.endpoint_ids,
        dispatcher=dispatcher,
        update=payload.update,
        test=(
            payload.notification.to_notification(user_id=user_id)
            if payload.notification is not None
            else None
        ),
    )
    return BulkOperationResultRead.model_validate(result)


@router.get("/stats", response_model=SubscriptionStatsRead)
def read_subscription_stats(
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
) -> SubscriptionStatsRead:
    stats = StatisticsAggregator(db).subscription_stats(channel=CHANNEL_PUSH)
    return SubscriptionStatsRead.model_validate(stats)
