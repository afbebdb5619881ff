"""Persistence helpers for per day delivery statistics."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import DailyStat
from controls_dispatch.infrastructure.models import DeliveryDailyStatModel


class DailyStatRepository:
    """Upsert counters keyed by channel, endpoint group and calendar day."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, channel: str, endpoint_group: str, stat_date: date) -> DailyStat | None:
        model = self._get_model(channel, endpoint_group, stat_date)
        return self._to_entity(model) if model else None

    def increment(
        self,
        *,
        channel: str,
        endpoint_group: str,
        stat_date: date,
        sent: int = 0,
        failed: int = 0,
        received: int = 0,
        response_ms: int | None = None,
    ) -> DailyStat:
        model = self._get_model(channel, endpoint_group, stat_date)
        if model is None:
            model = DeliveryDailyStatModel(
                channel=channel,
                endpoint_group=endpoint_group,
                stat_date=stat_date,
                sent=0,
                failed=0,
                received=0,
                total_response_ms=0,
            )
            self.session.add(model)
        model.sent = (model.sent or 0) + sent
        model.failed = (model.failed or 0) + failed
        model.received = (model.received or 0) + received
        if response_ms is not None:
            model.total_response_ms = (model.total_response_ms or 0) + response_ms
            model.min_response_ms = (
                response_ms if model.min_response_ms is None else min(model.min_response_ms, response_ms)
            )
            model.max_response_ms = (
                response_ms if model.max_response_ms is None else max(model.max_response_ms, response_ms)
            )
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def replace(self, stat: DailyStat) -> DailyStat:
        """Overwrite the counters of the row keyed like ``stat``."""

        model = self._get_model(stat.channel, stat.endpoint_group, stat.stat_date)
        if model is None:
            model = DeliveryDailyStatModel(
                channel=stat.channel, endpoint_group=stat.endpoint_group, stat_date=stat.stat_date
            )
            self.session.add(model)
        model.sent = stat.sent
        model.failed = stat.failed
        model.received = stat.received
        model.total_response_ms = stat.total_response_ms
        model.min_response_ms = stat.min_response_ms
        model.max_response_ms = stat.max_response_ms
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_between(
        self, start: date, end: date, *, channel: str | None = None
    ) -> Sequence[DailyStat]:
        query = (
            self.session.query(DeliveryDailyStatModel)
            .filter(DeliveryDailyStatModel.stat_date >= start)
            .filter(DeliveryDailyStatModel.stat_date <= end)
        )
        if channel:
            query = query.filter(DeliveryDailyStatModel.channel == channel)
        query = query.order_by(
            DeliveryDailyStatModel.stat_date,
            DeliveryDailyStatModel.channel,
            DeliveryDailyStatModel.endpoint_group,
        )
        return [self._to_entity(model) for model in query.all()]

    def list_ids_before(self, cutoff: date) -> list[int]:
        query = (
            self.session.query(DeliveryDailyStatModel.id)
            .filter(DeliveryDailyStatModel.stat_date < cutoff)
            .order_by(DeliveryDailyStatModel.id)
        )
        return [row[0] for row in query.all()]

    def delete(self, stat_id: int) -> bool:
        model = self.session.get(DeliveryDailyStatModel, stat_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    def _get_model(
        self, channel: str, endpoint_group: str, stat_date: date
    ) -> DeliveryDailyStatModel | None:
        return (
            self.session.query(DeliveryDailyStatModel)
            .filter(DeliveryDailyStatModel.channel == channel)
            .filter(DeliveryDailyStatModel.endpoint_group == endpoint_group)
            .filter(DeliveryDailyStatModel.stat_date == stat_date)
            .first()
        )

    @staticmethod
    def _to_entity(model: DeliveryDailyStatModel) -> DailyStat:
        return DailyStat(
            id=model.id,
            channel=model.channel,
            endpoint_group=model.endpoint_group,
            stat_date=model.stat_date,
            sent=model.sent or 0,
            failed=model.failed or 0,
            received=model.received or 0,
            total_response_ms=model.total_response_ms or 0,
            min_response_ms=model.min_response_ms,
            max_response_ms=model.max_response_ms,
        )


__all__ = ["DailyStatRepository"]
