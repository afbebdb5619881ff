"""Use cases for Slack and Teams webhooks, chat messages and chat templates."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    CHANNEL_SLACK,
    CHAT_CHANNELS,
    NO_TARGETS_MESSAGE,
    BulkOperationResult,
    ChatTemplate,
    DeliveryEndpoint,
    DeliveryReport,
    EndpointCheckResult,
    NotificationAction,
    NotificationFact,
    NotificationPriority,
    OutboundNotification,
    ServiceResult,
    TargetFilter,
)
from controls_dispatch.domain.errors import (
    EndpointNotFoundError,
    EndpointValidationError,
    RateLimitExceededError,
)
from controls_dispatch.infrastructure.channels import (
    ChannelAdapterRegistry,
    ChatRateLimiter,
    validate_slack_channel,
)
from controls_dispatch.infrastructure.repositories import ChatTemplateRepository, EndpointRepository

from .fan_out import FanOutDispatcher
from .check_endpoint import check_endpoint

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

WEBHOOK_NOT_FOUND_MESSAGE = "Webhook configuration not found"
WEBHOOK_INACTIVE_MESSAGE = "Webhook configuration is inactive"
TEMPLATE_NOT_FOUND_MESSAGE = "Template not found"


def _ensure_chat_channel(channel: str) -> str:
    normalized = (channel or "").strip().lower()
    if normalized not in CHAT_CHANNELS:
        raise EndpointValidationError(f"Unsupported chat channel '{channel}'")
    return normalized


async def register_chat_webhook(
    session: Session,
    *,
    registry: ChannelAdapterRegistry,
    channel: str,
    url: str,
    name: str,
    user_id: int | None = None,
    default_channel: str | None = None,
    username: str | None = None,
    icon_emoji: str | None = None,
    minimum_priority: str = "Low",
    allowed_slack_channels: Sequence[str] = (),
    test_connection: bool = True,
) -> tuple[DeliveryEndpoint, EndpointCheckResult | None]:
    """Store a webhook after validating its URL; a failing test leaves it inactive.

    Registering a URL that already exists for the channel refreshes and
    reactivates that webhook.
    """

    channel = _ensure_chat_channel(channel)
    address = registry.get(channel).validate_endpoint(url)
    if not (name or "").strip():
        raise EndpointValidationError("Webhook name is required")
    if channel == CHANNEL_SLACK:
        validate_slack_channel(default_channel, allowed_slack_channels)
    if not NotificationPriority.is_valid(minimum_priority):
        raise EndpointValidationError(f"Invalid priority '{minimum_priority}'")

    repository = EndpointRepository(session)
    values: dict[str, Any] = {
        "user_id": user_id,
        "name": name.strip(),
        "default_channel": default_channel,
        "username": username,
        "icon_emoji": icon_emoji,
        "is_active": True,
        "has_permission": True,
        "minimum_priority": NotificationPriority.parse(minimum_priority).label,
    }
    existing = repository.get_by_endpoint(channel, address)
    if existing is not None:
        webhook = repository.update(replace(existing, **values))
    else:
        webhook = repository.create(
            DeliveryEndpoint(id=None, channel=channel, endpoint=address, **values)
        )
    logger.info("Registered %s webhook %s (%s)", channel, webhook.id, webhook.name)

    if not test_connection:
        return webhook, None
    result = await check_endpoint(session, registry=registry, endpoint_id=webhook.id)
    if not result.success:
        repository.set_active([webhook.id], active=False)
        repository.record_failure(webhook.id, error=result.status_message)
        webhook = repository.get(webhook.id) or webhook
        logger.warning(
            "%s webhook %s failed its connection test: %s",
            channel,
            webhook.id,
            result.status_message,
        )
    return webhook, result


def update_chat_webhook(
    session: Session,
    *,
    webhook_id: int,
    changes: Mapping[str, Any],
    allowed_slack_channels: Sequence[str] = (),
) -> DeliveryEndpoint:
    repository = EndpointRepository(session)
    webhook = repository.get(webhook_id)
    if webhook is None or webhook.channel not in CHAT_CHANNELS:
        raise EndpointNotFoundError(WEBHOOK_NOT_FOUND_MESSAGE)
    effective = {key: value for key, value in changes.items() if value is not None}
    if webhook.channel == CHANNEL_SLACK and "default_channel" in effective:
        validate_slack_channel(effective["default_channel"], allowed_slack_channels)
    if "minimum_priority" in effective:
        if not NotificationPriority.is_valid(effective["minimum_priority"]):
            raise EndpointValidationError(f"Invalid priority '{effective['minimum_priority']}'")
        effective["minimum_priority"] = NotificationPriority.parse(effective["minimum_priority"]).label
    updated = repository.apply_changes(webhook_id, effective)
    if updated is None:
        raise EndpointNotFoundError(WEBHOOK_NOT_FOUND_MESSAGE)
    return updated


def list_chat_webhooks(
    session: Session,
    *,
    channel: str | None = None,
    user_id: int | None = None,
    active_only: bool = False,
) -> list[DeliveryEndpoint]:
    channels = [_ensure_chat_channel(channel)] if channel else list(CHAT_CHANNELS)
    return list(
        EndpointRepository(session).list(
            user_id=user_id,
            channels=channels,
            is_active=True if active_only else None,
            limit=None,
        )
    )


async def send_chat_message(
    session: Session,
    *,
    dispatcher: FanOutDispatcher,
    rate_limiter: ChatRateLimiter,
    webhook_id: int,
    message: OutboundNotification,
    user_id: int | None,
    allowed_slack_channels: Sequence[str] = (),
) -> ServiceResult[DeliveryReport]:
    """Send ``message`` through one stored webhook.

    Raises :class:`RateLimitExceededError` when the user exhausted the
    per-minute budget for this webhook; other problems are error results.
    """

    webhook = EndpointRepository(session).get(webhook_id)
    if webhook is None or webhook.channel not in CHAT_CHANNELS:
        return ServiceResult.fail(WEBHOOK_NOT_FOUND_MESSAGE)
    if not webhook.is_active:
        return ServiceResult.fail(WEBHOOK_INACTIVE_MESSAGE)

    message = replace(
        message,
        chat_channel=message.chat_channel or webhook.default_channel,
        username=message.username or webhook.username,
        icon_emoji=message.icon_emoji or webhook.icon_emoji,
        user_id=message.user_id if message.user_id is not None else user_id,
    )
    if webhook.channel == CHANNEL_SLACK:
        try:
            validate_slack_channel(message.chat_channel, allowed_slack_channels)
        except EndpointValidationError as exc:
            return ServiceResult.fail(str(exc))

    rate_limiter.acquire(user_id, webhook.endpoint)

    report = await dispatcher.send(message, TargetFilter.build(endpoint_ids=[webhook.id]))
    if report.total_targeted == 0:
        return ServiceResult.fail(report.message or NO_TARGETS_MESSAGE, data=report)
    if not report.success:
        return ServiceResult.fail(report.errors[0] if report.errors else "Delivery failed", data=report)
    return ServiceResult.ok(report)


async def send_bulk_chat_messages(
    session: Session,
    *,
    dispatcher: FanOutDispatcher,
    rate_limiter: ChatRateLimiter,
    webhook_ids: Iterable[int],
    message: OutboundNotification,
    user_id: int | None,
    allowed_slack_channels: Sequence[str] = (),
    delay_ms: int = 1000,
    sleep: Sleep = asyncio.sleep,
) -> BulkOperationResult:
    """Send ``message`` to each webhook in turn, pausing between sends."""

    ids = list(dict.fromkeys(webhook_ids))
    result = BulkOperationResult(operation="send", total_items=len(ids))
    for index, webhook_id in enumerate(ids):
        if index and delay_ms > 0:
            await sleep(delay_ms / 1000)
        try:
            outcome = await send_chat_message(
                session,
                dispatcher=dispatcher,
                rate_limiter=rate_limiter,
                webhook_id=webhook_id,
                message=message,
                user_id=user_id,
                allowed_slack_channels=allowed_slack_channels,
            )
        except RateLimitExceededError as exc:
            result.found_items += 1
            result.failed_items += 1
            result.errors.append(f"Webhook {webhook_id}: {exc}")
            continue

        if outcome.error_message == WEBHOOK_NOT_FOUND_MESSAGE:
            result.errors.append(f"Webhook {webhook_id}: {outcome.error_message}")
            continue
        result.found_items += 1
        if outcome.success:
            result.successful_items += 1
        else:
            result.failed_items += 1
            result.errors.append(f"Webhook {webhook_id}: {outcome.error_message}")
    logger.info(
        "Bulk chat send delivered %s of %s messages", result.successful_items, result.total_items
    )
    return result


def create_chat_template(
    session: Session,
    *,
    name: str,
    channel: str,
    message_template: str,
    title_template: str = "",
    notification_type: str | None = None,
    theme_color: str | None = None,
    use_rich_card: bool = False,
    facts: Mapping[str, str] | None = None,
    actions: Sequence[Mapping[str, str]] | None = None,
    created_by: int | None = None,
) -> ChatTemplate:
    if not (name or "").strip():
        raise ValueError("Template name is required")
    if not (message_template or "").strip():
        raise ValueError("Template message is required")
    for action in actions or ():
        if not action.get("title") or not action.get("url"):
            raise ValueError("Template actions require a title and a url")
    template = ChatTemplate(
        id=None,
        name=name.strip(),
        channel=_ensure_chat_channel(channel),
        message_template=message_template,
        title_template=title_template or "",
        notification_type=notification_type,
        theme_color=theme_color.lstrip("#") if theme_color else None,
        use_rich_card=use_rich_card,
        facts=dict(facts or {}),
        actions=[dict(action) for action in actions or ()],
        created_by=created_by,
    )
    return ChatTemplateRepository(session).create(template)


def list_chat_templates(
    session: Session, *, channel: str | None = None, active_only: bool = True
) -> list[ChatTemplate]:
    channel = _ensure_chat_channel(channel) if channel else None
    return list(ChatTemplateRepository(session).list(channel=channel, active_only=active_only))


def build_template_message(
    template: ChatTemplate, variables: Mapping[str, Any] | None
) -> OutboundNotification:
    """Turn a stored template into a notification; placeholders render at send time."""

    return OutboundNotification(
        title=template.title_template,
        body=template.message_template,
        notification_type=template.notification_type or "General",
        variables=dict(variables or {}),
        theme_color=template.theme_color,
        use_rich_card=template.use_rich_card,
        facts=tuple(NotificationFact(name, value) for name, value in template.facts.items()),
        actions=tuple(
            NotificationAction(action=f"action_{index}", title=action["title"], url=action.get("url"))
            for index, action in enumerate(template.actions)
        ),
    )


async def send_chat_template(
    session: Session,
    *,
    dispatcher: FanOutDispatcher,
    rate_limiter: ChatRateLimiter,
    template_id: int,
    webhook_id: int,
    variables: Mapping[str, Any] | None,
    user_id: int | None,
    allowed_slack_channels: Sequence[str] = (),
) -> ServiceResult[DeliveryReport]:
    template = ChatTemplateRepository(session).get(template_id)
    if template is None or not template.is_active:
        return ServiceResult.fail(TEMPLATE_NOT_FOUND_MESSAGE)
    webhook = EndpointRepository(session).get(webhook_id)
    if webhook is not None and webhook.channel != template.channel:
        return ServiceResult.fail(
            f"Template '{template.name}' targets {template.channel}, not {webhook.channel}"
        )
    return await send_chat_message(
        session,
        dispatcher=dispatcher,
        rate_limiter=rate_limiter,
        webhook_id=webhook_id,
        message=build_template_message(template, variables),
        user_id=user_id,
        allowed_slack_channels=allowed_slack_channels,
    )


__all__ = [
    "TEMPLATE_NOT_FOUND_MESSAGE",
    "WEBHOOK_INACTIVE_MESSAGE",
    "WEBHOOK_NOT_FOUND_MESSAGE",
    "build_template_message",
    "create_chat_template",
    "list_chat_templates",
    "list_chat_webhooks",
    "register_chat_webhook",
    "send_bulk_chat_messages",
    "send_chat_message",
    "send_chat_template",
    "update_chat_webhook",
]
