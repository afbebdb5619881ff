"""Routes managing the acting user's notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from controls_dispatch.application.use_cases.preferences import (
    PreferenceResolver,
    bulk_update_preferences,
    delete_preference,
    get_preference,
    get_system_preference_stats,
    get_user_preference_stats,
    initialize_default_preferences,
    list_notification_types,
    list_preferences,
    reset_preferences_to_defaults,
    set_preference,
    update_preference,
    update_quiet_hours,
)
from controls_dispatch.domain.entities import NotificationTypeDefaults
from controls_dispatch.infrastructure.database import get_db
from controls_dispatch.interfaces.api.dependencies import (
    get_current_user_id,
    get_notification_defaults,
    get_preference_resolver,
)
from controls_dispatch.interfaces.api.routes_helpers import http_error_for
from controls_dispatch.interfaces.api.schemas import (
    CountResponse,
    DeliveryDecisionRead,
    NotificationTypeRead,
    PreferenceRead,
    PreferenceStatsRead,
    PreferenceUpdate,
    PreferenceWrite,
    QuietHoursUpdate,
)

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("/", response_model=list[PreferenceRead])
def list_user_preferences(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> list[PreferenceRead]:
    return [PreferenceRead.model_validate(item) for item in list_preferences(db, user_id=user_id)]


@router.get("/types", response_model=list[NotificationTypeRead])
def list_types(
    defaults: NotificationTypeDefaults = Depends(get_notification_defaults),
) -> list[NotificationTypeRead]:
    return [NotificationTypeRead.model_validate(entry) for entry in list_notification_types(defaults)]


@router.get("/summary", response_model=PreferenceStatsRead)
def read_user_summary(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> PreferenceStatsRead:
    return PreferenceStatsRead.model_validate(get_user_preference_stats(db, user_id=user_id))


@router.get("/summary/system", response_model=PreferenceStatsRead)
def read_system_summary(
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
) -> PreferenceStatsRead:
    return PreferenceStatsRead.model_validate(get_system_preference_stats(db))


@router.get("/decision/{notification_type}", response_model=DeliveryDecisionRead)
def read_delivery_decision(
    notification_type: str,
    priority: str = Query(default="Medium"),
    resolver: PreferenceResolver = Depends(get_preference_resolver),
    user_id: int = Depends(get_current_user_id),
) -> DeliveryDecisionRead:
    """Show which channels a notification of this type and priority would use now."""

    decision = resolver.delivery_summary(user_id, notification_type, priority)
    return DeliveryDecisionRead.model_validate(decision)


@router.post("/bulk", response_model=CountResponse)
def bulk_update(
    payload: PreferenceUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> CountResponse:
    try:
        count = bulk_update_preferences(db, user_id=user_id, changes=payload.changes())
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return CountResponse(count=count)


@router.post("/defaults", response_model=CountResponse)
def initialize_defaults(
    db: Session = Depends(get_db),
    defaults: NotificationTypeDefaults = Depends(get_notification_defaults),
    user_id: int = Depends(get_current_user_id),
) -> CountResponse:
    return CountResponse(
        count=initialize_default_preferences(db, user_id=user_id, defaults=defaults)
    )


@router.post("/reset", response_model=CountResponse)
def reset_to_defaults(
    db: Session = Depends(get_db),
    defaults: NotificationTypeDefaults = Depends(get_notification_defaults),
    user_id: int = Depends(get_current_user_id),
) -> CountResponse:
    return CountResponse(count=reset_preferences_to_defaults(db, user_id=user_id, defaults=defaults))


@router.put("/quiet-hours", response_model=CountResponse)
def set_quiet_hours(
    payload: QuietHoursUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> CountResponse:
    try:
        count = update_quiet_hours(
            db,
            user_id=user_id,
            start=payload.start,
            end=payload.end,
            timezone=payload.timezone,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return CountResponse(count=count)


@router.get("/{notification_type}", response_model=PreferenceRead)
def read_preference(
    notification_type: str,
    db: Session = Depends(get_db),
    defaults: NotificationTypeDefaults = Depends(get_notification_defaults),
    user_id: int = Depends(get_current_user_id),
) -> PreferenceRead:
    """Return the stored preference, or the defaults when none is stored."""

    try:
        preference = get_preference(
            db, user_id=user_id, notification_type=notification_type, defaults=defaults
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PreferenceRead.model_validate(preference)


@router.put("/{notification_type}", response_model=PreferenceRead)
def replace_preference(
    notification_type: str,
    payload: PreferenceWrite,
    db: Session = Depends(get_db),
    defaults: NotificationTypeDefaults = Depends(get_notification_defaults),
    user_id: int = Depends(get_current_user_id),
) -> PreferenceRead:
    try:
        preference = set_preference(
            db,
            user_id=user_id,
            notification_type=notification_type,
            defaults=defaults,
            **payload.model_dump(),
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return PreferenceRead.model_validate(preference)


@router.patch("/{notification_type}", response_model=PreferenceRead)
def patch_preference(
    notification_type: str,
    payload: PreferenceUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> PreferenceRead:
    try:
        preference = update_preference(
            db,
            user_id=user_id,
            notification_type=notification_type,
            changes=payload.changes(),
        )
    except ValueError as exc:
        detail = str(exc)
        code = status.HTTP_404_NOT_FOUND if "not found" in detail else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=detail) from exc
    return PreferenceRead.model_validate(preference)


@router.delete("/{notification_type}", status_code=status.HTTP_204_NO_CONTENT)
def remove_preference(
    notification_type: str,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> Response:
    if not delete_preference(db, user_id=user_id, notification_type=notification_type):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification preference not found for user {user_id} and type {notification_type}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
