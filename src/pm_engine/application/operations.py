"""Operation table: explicit mapping from operation name to engine handler.

Hosts that invoke the core by name (an RPC endpoint, a CLI, a message
consumer) go through ``dispatch``; nothing here depends on FastAPI.

Mutating operations require a caller identity; queries accept ``None``.
Every handler returns plain JSON-compatible data.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.schemas import DepositResponse, UserOut
from src.pm_common.enums import Outcome
from src.pm_common.errors import (
    InvalidCredentialsError,
    InvalidParamsError,
    UnknownOperationError,
)
from src.pm_engine.engine.engine import MarketEngine
from src.pm_market.application.schemas import (
    BetReceiptOut,
    CostOut,
    MarketOut,
    ResolutionOut,
)

# ---------------------------------------------------------------------------
# Params
# ---------------------------------------------------------------------------


class NoParams(BaseModel):
    pass


class RegisterParams(BaseModel):
    bio: str = Field("", max_length=2000)


class AddMarketParams(BaseModel):
    question: str = Field(..., min_length=1, max_length=500)
    liquidity: float = Field(..., gt=0, allow_inf_nan=False)


class BetParams(BaseModel):
    market_id: str
    side: Outcome
    quantity: int = Field(..., gt=0)


class MarketIdParams(BaseModel):
    market_id: str


class DepositParams(BaseModel):
    amount: float


class IdParams(BaseModel):
    id: str


Handler = Callable[[MarketEngine, AsyncSession, str | None, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Operation:
    name: str
    mutates: bool
    params: type[BaseModel]
    handler: Handler


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _register(engine: MarketEngine, db: AsyncSession, caller: Any, p: RegisterParams) -> Any:
    user = await engine.register(db, caller, p.bio)
    return UserOut.from_domain(user).model_dump(mode="json")


async def _add_market(
    engine: MarketEngine, db: AsyncSession, caller: Any, p: AddMarketParams
) -> Any:
    market = await engine.add_market(db, caller, p.question, p.liquidity)
    return MarketOut.from_domain(market).model_dump(mode="json")


async def _bet(engine: MarketEngine, db: AsyncSession, caller: Any, p: BetParams) -> Any:
    receipt = await engine.bet(db, caller, p.market_id, p.side, p.quantity)
    return BetReceiptOut.from_receipt(receipt).model_dump(mode="json")


async def _resolve(engine: MarketEngine, db: AsyncSession, caller: Any, p: MarketIdParams) -> Any:
    resolution = await engine.resolve(db, caller, p.market_id)
    return ResolutionOut.from_resolution(resolution).model_dump(mode="json")


async def _deposit(engine: MarketEngine, db: AsyncSession, caller: Any, p: DepositParams) -> Any:
    user = await engine.deposit(db, caller, p.amount)
    return DepositResponse(
        credited=user is not None,
        amount=p.amount,
        balance=user.balance if user is not None else None,
    ).model_dump(mode="json")


async def _get_cost(engine: MarketEngine, db: AsyncSession, caller: Any, p: MarketIdParams) -> Any:
    price_yes, price_no = await engine.get_cost(db, p.market_id)
    return CostOut(market_id=p.market_id, price_yes=price_yes, price_no=price_no).model_dump(mode="json")


async def _get_user(engine: MarketEngine, db: AsyncSession, caller: Any, p: IdParams) -> Any:
    user = await engine.get_user(db, p.id)
    return UserOut.from_domain(user).model_dump(mode="json") if user is not None else None


async def _get_users(engine: MarketEngine, db: AsyncSession, caller: Any, p: NoParams) -> Any:
    return [UserOut.from_domain(u).model_dump(mode="json") for u in await engine.get_users(db)]


async def _get_market(engine: MarketEngine, db: AsyncSession, caller: Any, p: IdParams) -> Any:
    market = await engine.get_market(db, p.id)
    return MarketOut.from_domain(market).model_dump(mode="json") if market is not None else None


async def _get_markets(engine: MarketEngine, db: AsyncSession, caller: Any, p: NoParams) -> Any:
    return [MarketOut.from_domain(m).model_dump(mode="json") for m in await engine.get_markets(db)]


OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        Operation("register", True, RegisterParams, _register),
        Operation("add_market", True, AddMarketParams, _add_market),
        Operation("bet", True, BetParams, _bet),
        Operation("resolve", True, MarketIdParams, _resolve),
        Operation("deposit", True, DepositParams, _deposit),
        Operation("get_cost", False, MarketIdParams, _get_cost),
        Operation("get_user", False, IdParams, _get_user),
        Operation("get_users", False, NoParams, _get_users),
        Operation("get_market", False, IdParams, _get_market),
        Operation("get_markets", False, NoParams, _get_markets),
    )
}


async def dispatch(
    engine: MarketEngine,
    db: AsyncSession,
    name: str,
    caller_id: str | None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Validate params and run the named operation.

    Raises:
        UnknownOperationError: ``name`` is not in the table.
        InvalidCredentialsError: a mutating operation without a caller.
        InvalidParamsError: params do not match the operation's model.
    """
    op = OPERATIONS.get(name)
    if op is None:
        raise UnknownOperationError(name)
    if op.mutates and not caller_id:
        raise InvalidCredentialsError()
    try:
        parsed = op.params.model_validate(params or {})
    except ValidationError as exc:
        raise InvalidParamsError(name, str(exc.errors(include_url=False))) from None
    return await op.handler(engine, db, caller_id, parsed)
