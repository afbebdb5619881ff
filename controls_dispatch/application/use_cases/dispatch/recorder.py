"""Persist the outcome of one delivery attempt."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    MESSAGE_STATUS_FAILED,
    MESSAGE_STATUS_SENT,
    DeliveryEndpoint,
    DeliveryMessage,
    FailureRecord,
    SendOutcome,
)
from controls_dispatch.infrastructure.repositories import (
    DeliveryMessageRepository,
    EndpointRepository,
    FailureRepository,
)

from .statistics import StatisticsAggregator
from .targets import endpoint_group_for

logger = logging.getLogger(__name__)


class DeliveryRecorder:
    """Write the message row, endpoint counters, failure record and daily stat.

    Permanent failures retire the endpoint and are not queued for retry;
    transient failures keep the payload in a :class:`FailureRecord`.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._endpoints = EndpointRepository(session)
        self._messages = DeliveryMessageRepository(session)
        self._failures = FailureRepository(session)
        self._statistics = StatisticsAggregator(session)

    def record(
        self,
        endpoint: DeliveryEndpoint,
        payload: str,
        outcome: SendOutcome,
        *,
        attempted_at: datetime,
        notification_type: str | None = None,
        pending_message_id: int | None = None,
    ) -> DeliveryMessage:
        status = MESSAGE_STATUS_SENT if outcome.success else MESSAGE_STATUS_FAILED
        if pending_message_id is None:
            message = self._messages.create(
                DeliveryMessage(
                    id=None,
                    channel=endpoint.channel,
                    target=endpoint.endpoint,
                    payload=payload,
                    status=status,
                    endpoint_id=endpoint.id,
                    user_id=endpoint.user_id,
                    notification_type=notification_type,
                    status_code=outcome.status_code,
                    error_message=outcome.error,
                    response_time_ms=outcome.latency_ms,
                    message_id=outcome.message_id,
                    created_at=attempted_at,
                    sent_at=attempted_at,
                )
            )
        else:
            message = self._messages.complete(
                pending_message_id,
                status=status,
                status_code=outcome.status_code,
                error_message=outcome.error,
                response_time_ms=outcome.latency_ms,
                transport_message_id=outcome.message_id,
            )

        if endpoint.id is not None:
            if outcome.success:
                self._endpoints.record_success(endpoint.id, at=attempted_at)
            else:
                self._endpoints.record_failure(
                    endpoint.id, error=outcome.error, permanent=outcome.permanent
                )

        if not outcome.success and not outcome.permanent:
            self._failures.append(
                FailureRecord(
                    id=None,
                    channel=endpoint.channel,
                    target=endpoint.endpoint,
                    payload=payload,
                    error_message=outcome.error,
                    status_code=outcome.status_code,
                    message_id=message.id,
                    endpoint_id=endpoint.id,
                    user_id=endpoint.user_id,
                    failed_at=attempted_at,
                )
            )
        elif outcome.permanent:
            logger.info(
                "Endpoint %s deactivated after permanent failure: %s", endpoint.id, outcome.error
            )

        self._statistics.record(
            channel=endpoint.channel,
            endpoint_group=endpoint_group_for(endpoint),
            success=outcome.success,
            latency_ms=outcome.latency_ms,
            day=attempted_at.date(),
        )
        return message


__all__ = ["DeliveryRecorder"]
