from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from record_keeper.api.deps import get_context
from record_keeper.context import ServerContext
from record_keeper.models import CurrencyPair

router = APIRouter(prefix="/forex", tags=["forex"])


@router.get("", response_model=list[CurrencyPair])
def get_all_forex_prices(ctx: ServerContext = Depends(get_context)) -> list[CurrencyPair]:
    with ctx.read() as store:
        return store.forex_pairs.list()


@router.get("/{symbol}", response_model=CurrencyPair)
def get_forex_price(symbol: str, ctx: ServerContext = Depends(get_context)) -> CurrencyPair:
    with ctx.read() as store:
        pair = store.forex_pairs.get(symbol)
    if pair is None:
        raise HTTPException(status_code=404)
    return pair


@router.put("")
def update_forex_price(pair: CurrencyPair, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.forex_pairs.update(pair.symbol, pair)
    return Response(status_code=200)
