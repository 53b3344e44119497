"""Exchange rate API endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from vetbilling.core.errors import InvalidRate
from vetbilling.schemas.exchange_rate import ExchangeRateResponse, ManualRateUpdate
from vetbilling.services.exchange_rate_provider import (
    DolarApiRateProvider,
    ExchangeRateProviderBase,
    get_exchange_rate_provider,
)

router = APIRouter()


def _rate_response(provider: ExchangeRateProviderBase) -> ExchangeRateResponse:
    rate = provider.get_rate()
    return ExchangeRateResponse(
        rate=rate.value,
        source=rate.source.value,
        mode=provider.mode,
        fetched_at=rate.fetched_at,
    )


def _manual_capable(provider: ExchangeRateProviderBase) -> DolarApiRateProvider:
    if not isinstance(provider, DolarApiRateProvider):
        raise HTTPException(
            status_code=400, detail="The configured rate provider does not support manual rates"
        )
    return provider


@router.get("/", response_model=ExchangeRateResponse)
def get_exchange_rate(
    provider: ExchangeRateProviderBase = Depends(get_exchange_rate_provider),
) -> ExchangeRateResponse:
    """The rate a payment without an explicit rate would use right now."""
    return _rate_response(provider)


@router.put("/manual", response_model=ExchangeRateResponse)
def set_manual_exchange_rate(
    data: ManualRateUpdate,
    provider: ExchangeRateProviderBase = Depends(get_exchange_rate_provider),
) -> ExchangeRateResponse:
    """Pin the rate until the manual override is removed."""
    try:
        _manual_capable(provider).set_manual_rate(data.rate)
    except InvalidRate as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from None
    return _rate_response(provider)


@router.delete("/manual", response_model=ExchangeRateResponse)
def clear_manual_exchange_rate(
    provider: ExchangeRateProviderBase = Depends(get_exchange_rate_provider),
) -> ExchangeRateResponse:
    """Go back to the automatic rate."""
    _manual_capable(provider).clear_manual_rate()
    return _rate_response(provider)
