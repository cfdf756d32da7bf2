"""Day endpoints - daily summary and day balancing."""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from timebalance.database import get_database
from timebalance.models.balance import DayBalance, DaySummary, UndoneEntry
from timebalance.models.schedule import WorkSchedule
from timebalance.services.balance_service import BalanceService
from timebalance.services.day_balancer import BalancingError, ConfirmationRequiredError
from timebalance.utils.auth import get_current_user_id


router = APIRouter(prefix="/days", tags=["days"])


def _balancing_http_error(error: BalancingError) -> HTTPException:
    """Map a balancing error to its HTTP response."""
    if isinstance(error, ConfirmationRequiredError):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=422, detail=str(error))


@router.get("/{day}", response_model=DaySummary)
async def get_day(
    day: date,
    tz: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get the completed entries of a local day with their totals.

    - Totals use corrected durations where present
    """
    service = BalanceService(db)
    try:
        return await service.day_summary(user_id=user_id, day=day, tz_name=tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{day}/balance/preview", response_model=DayBalance)
async def preview_balance(
    day: date,
    schedule: WorkSchedule,
    tz: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Compute the balance for a day without storing it.

    - A non-zero rounded_difference_hours is reported, not an error
    """
    service = BalanceService(db)
    try:
        return await service.preview(
            user_id=user_id, day=day, schedule=schedule, tz_name=tz
        )
    except BalancingError as e:
        raise _balancing_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{day}/balance", response_model=DayBalance)
async def apply_balance(
    day: date,
    schedule: WorkSchedule,
    confirm: bool = Query(False),
    tz: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Balance a day and store the corrected durations.

    - Returns 409 if a residual remains and confirm is not set
    - Returns 422 for an unusable schedule or all-zero entries
    """
    service = BalanceService(db)
    try:
        return await service.apply(
            user_id=user_id,
            day=day,
            schedule=schedule,
            tz_name=tz,
            confirm=confirm,
        )
    except BalancingError as e:
        raise _balancing_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{day}/balance", response_model=list[UndoneEntry])
async def undo_balance(
    day: date,
    tz: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Clear all corrections of a day."""
    service = BalanceService(db)
    try:
        return await service.undo_day(user_id=user_id, day=day, tz_name=tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
