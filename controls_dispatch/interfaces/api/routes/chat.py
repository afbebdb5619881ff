"""Routes for Slack and Teams webhooks, chat messages and chat templates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from controls_dispatch.application.use_cases.dispatch import (
    TEMPLATE_NOT_FOUND_MESSAGE,
    WEBHOOK_NOT_FOUND_MESSAGE,
    FanOutDispatcher,
    check_endpoint,
    create_chat_template,
    delete_endpoint,
    get_endpoint,
    list_chat_templates,
    list_chat_webhooks,
    register_chat_webhook,
    send_bulk_chat_messages,
    send_chat_message,
    send_chat_template,
    update_chat_webhook,
)
from controls_dispatch.config import Settings
from controls_dispatch.domain.entities import CHAT_CHANNELS, DeliveryReport, ServiceResult
from controls_dispatch.domain.errors import EndpointNotFoundError, RateLimitExceededError
from controls_dispatch.infrastructure.channels import ChannelAdapterRegistry, ChatRateLimiter
from controls_dispatch.infrastructure.database import get_db
from controls_dispatch.interfaces.api.dependencies import (
    get_app_settings,
    get_channel_registry,
    get_current_user_id,
    get_dispatcher,
    get_rate_limiter,
)
from controls_dispatch.interfaces.api.routes_helpers import http_error_for
from controls_dispatch.interfaces.api.schemas import (
    BulkChatMessageRequest,
    BulkOperationResultRead,
    ChatMessageRequest,
    ChatTemplateCreate,
    ChatTemplateRead,
    ChatTemplateSendRequest,
    ConnectionTestRead,
    DeliveryReportRead,
    EndpointRead,
    EndpointUpdate,
    WebhookCreate,
    WebhookRegistration,
)

router = APIRouter(prefix="/chat", tags=["chat"])


def _report_or_error(result: ServiceResult[DeliveryReport]) -> DeliveryReportRead:
    if result.data is not None:
        return DeliveryReportRead.model_validate(result.data)
    if result.error_message in (WEBHOOK_NOT_FOUND_MESSAGE, TEMPLATE_NOT_FOUND_MESSAGE):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error_message)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error_message)


def _ensure_webhook(db: Session, webhook_id: int) -> None:
    try:
        webhook = get_endpoint(db, endpoint_id=webhook_id)
    except EndpointNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=WEBHOOK_NOT_FOUND_MESSAGE
        ) from exc
    if webhook.channel not in CHAT_CHANNELS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=WEBHOOK_NOT_FOUND_MESSAGE)


@router.post(
    "/webhooks",
    response_model=WebhookRegistration,
    status_code=status.HTTP_201_CREATED,
)
async def create_webhook(
    payload: WebhookCreate,
    db: Session = Depends(get_db),
    registry: ChannelAdapterRegistry = Depends(get_channel_registry),
    settings: Settings = Depends(get_app_settings),
    user_id: int = Depends(get_current_user_id),
) -> WebhookRegistration:
    """Store a webhook; a failed connection test leaves it inactive."""

    try:
        webhook, result = await register_chat_webhook(
            db,
            registry=registry,
            channel=payload.channel,
            url=payload.url,
            name=payload.name,
            user_id=user_id,
            default_channel=payload.default_channel,
            username=payload.username,
            icon_emoji=payload.icon_emoji,
            minimum_priority=payload.minimum_priority,
            allowed_slack_channels=settings.allowed_slack_channels,
            test_connection=payload.test_connection,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return WebhookRegistration(
        webhook=EndpointRead.model_validate(webhook),
        test=ConnectionTestRead.model_validate(result) if result is not None else None,
    )


@router.get("/webhooks", response_model=list[EndpointRead])
def list_webhooks(
    channel: str | None = Query(default=None),
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
) -> list[EndpointRead]:
    try:
        webhooks = list_chat_webhooks(db, channel=channel, active_only=active_only)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return [EndpointRead.model_validate(webhook) for webhook in webhooks]


@router.patch("/webhooks/{webhook_id}", response_model=EndpointRead)
def update_webhook(
    webhook_id: int,
    payload: EndpointUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    _user_id: int = Depends(get_current_user_id),
) -> EndpointRead:
    try:
        webhook = update_chat_webhook(
            db,
            webhook_id=webhook_id,
            changes=payload.changes(),
            allowed_slack_channels=settings.allowed_slack_channels,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return EndpointRead.model_validate(webhook)


@router.delete("/webhooks/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_webhook(
    webhook_id: int,
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
) -> Response:
    _ensure_webhook(db, webhook_id)
    delete_endpoint(db, endpoint_id=webhook_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/webhooks/{webhook_id}/test", response_model=ConnectionTestRead)
async def test_webhook(
    webhook_id: int,
    db: Session = Depends(get_db),
    registry: ChannelAdapterRegistry = Depends(get_channel_registry),
    _user_id: int = Depends(get_current_user_id),
) -> ConnectionTestRead:
    _ensure_webhook(db, webhook_id)
    result = await check_endpoint(db, registry=registry, endpoint_id=webhook_id)
    return ConnectionTestRead.model_validate(result)


@router.post("/messages", response_model=DeliveryReportRead)
async def send_message(
    payload: ChatMessageRequest,
    db: Session = Depends(get_db),
    dispatcher: FanOutDispatcher = Depends(get_dispatcher),
    rate_limiter: ChatRateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_app_settings),
    user_id: int = Depends(get_current_user_id),
) -> DeliveryReportRead:
    try:
        result = await send_chat_message(
            db,
            dispatcher=dispatcher,
            rate_limiter=rate_limiter,
            webhook_id=payload.webhook_id,
            message=payload.message.to_notification(user_id=user_id),
            user_id=user_id,
            allowed_slack_channels=settings.allowed_slack_channels,
        )
    except RateLimitExceededError as exc:
        raise http_error_for(exc) from exc
    return _report_or_error(result)


@router.post("/messages/bulk", response_model=BulkOperationResultRead)
async def send_bulk_messages(
    payload: BulkChatMessageRequest,
    db: Session = Depends(get_db),
    dispatcher: FanOutDispatcher = Depends(get_dispatcher),
    rate_limiter: ChatRateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_app_settings),
    user_id: int = Depends(get_current_user_id),
) -> BulkOperationResultRead:
    result = await send_bulk_chat_messages(
        db,
        dispatcher=dispatcher,
        rate_limiter=rate_limiter,
        webhook_ids=payload.webhook_ids,
        message=payload.message.to_notification(user_id=user_id),
        user_id=user_id,
        allowed_slack_channels=settings.allowed_slack_channels,
        delay_ms=settings.rate_limit_delay_ms,
    )
    return BulkOperationResultRead.model_validate(result)


@router.post(
    "/templates",
    response_model=ChatTemplateRead,
    status_code=status.HTTP_201_CREATED,
)
def create_template(
    payload: ChatTemplateCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> ChatTemplateRead:
    try:
        template = create_chat_template(
            db,
            name=payload.name,
            channel=payload.channel,
            message_template=payload.message_template,
            title_template=payload.title_template,
            notification_type=payload.notification_type,
            theme_color=payload.theme_color,
            use_rich_card=payload.use_rich_card,
            facts=payload.facts,
            actions=[action.model_dump() for action in payload.actions],
            created_by=user_id,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return ChatTemplateRead.model_validate(template)


@router.get("/templates", response_model=list[ChatTemplateRead])
def list_templates(
    channel: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
) -> list[ChatTemplateRead]:
    try:
        templates = list_chat_templates(db, channel=channel)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return [ChatTemplateRead.model_validate(template) for template in templates]


@router.post("/templates/{template_id}/send", response_model=DeliveryReportRead)
async def send_template(
    template_id: int,
    payload: ChatTemplateSendRequest,
    db: Session = Depends(get_db),
    dispatcher: FanOutDispatcher = Depends(get_dispatcher),
    rate_limiter: ChatRateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_app_settings),
    user_id: int = Depends(get_current_user_id),
) -> DeliveryReportRead:
    try:
        result = await send_chat_template(
            db,
            dispatcher=dispatcher,
            rate_limiter=rate_limiter,
            template_id=template_id,
            webhook_id=payload.webhook_id,
            variables=payload.variables,
            user_id=user_id,
            allowed_slack_channels=settings.allowed_slack_channels,
        )
    except RateLimitExceededError as exc:
        raise http_error_for(exc) from exc
    return _report_or_error(result)
