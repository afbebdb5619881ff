"""Bulk operations over a list of endpoint ids."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    BulkOperationResult,
    DeliveryReport,
    OutboundNotification,
)
from controls_dispatch.infrastructure.repositories import EndpointRepository

from .endpoints import update_endpoint
from .fan_out import FanOutDispatcher
from .check_endpoint import build_test_notification

logger = logging.getLogger(__name__)

BULK_OPERATIONS = ("activate", "deactivate", "delete", "update", "test")


async def bulk_operation(
    session: Session,
    *,
    operation: str,
    endpoint_ids: Iterable[int],
    dispatcher: FanOutDispatcher | None = None,
    update: Mapping[str, Any] | None = None,
    test: OutboundNotification | None = None,
) -> BulkOperationResult:
    """Apply ``operation`` to the endpoints that exist among ``endpoint_ids``.

    Ids that do not exist only lower ``found_items``; they are not errors.
    """

    ids = list(dict.fromkeys(endpoint_ids))
    result = BulkOperationResult(operation=operation, total_items=len(ids))
    repository = EndpointRepository(session)
    try:
        endpoints = repository.list_by_ids(ids)
        result.found_items = len(endpoints)
        found_ids = [endpoint.id for endpoint in endpoints]
        normalized = (operation or "").strip().lower()

        if normalized == "activate":
            result.successful_items = repository.set_active(found_ids, active=True)
        elif normalized == "deactivate":
            result.successful_items = repository.set_active(found_ids, active=False)
        elif normalized == "delete":
            result.successful_items = repository.delete_many(found_ids)
        elif normalized == "update":
            if not update:
                result.errors.append("Update data is required for the update operation")
            else:
                for endpoint_id in found_ids:
                    try:
                        update_endpoint(session, endpoint_id=endpoint_id, changes=update)
                    except ValueError as exc:
                        result.failed_items += 1
                        result.errors.append(f"Endpoint {endpoint_id}: {exc}")
                    else:
                        result.successful_items += 1
        elif normalized == "test":
            if dispatcher is None:
                result.errors.append("Test operation requires a dispatcher")
            elif found_ids:
                report = DeliveryReport()
                await dispatcher.deliver(test or build_test_notification(), endpoints, report)
                result.successful_items = report.successful_deliveries
                result.failed_items = report.failed_deliveries
                result.errors.extend(report.errors)
        else:
            result.errors.append(f"Unknown operation: {operation}")
    except Exception as exc:
        session.rollback()
        logger.exception("Error processing bulk operation %s", operation)
        result.errors.append(f"Internal error: {exc}")

    logger.info(
        "Processed bulk operation %s on %s/%s endpoints",
        operation,
        result.successful_items,
        result.total_items,
    )
    return result


__all__ = ["BULK_OPERATIONS", "bulk_operation"]
