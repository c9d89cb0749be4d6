"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: User/Auth
  2xxx: Balance
  3xxx: Market
  4xxx: Bet
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: User/Auth ---

class UserNotRegisteredError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1001, f"User is not registered: {user_id}", 404)


class UserAlreadyRegisteredError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1002, f"User already registered: {user_id}", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Missing or invalid caller credentials", 401)


# --- 2xxx: Balance ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required:.4f}, available {available:.4f}",
            422,
        )


# --- 3xxx: Market ---

class NoSuchMarketError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"No such market: {market_id}", 404)


class MarketAlreadyResolvedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3002, f"Market already resolved: {market_id}", 409)


class NotCreatorError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Only the creator can resolve market {market_id}", 403)


class InvalidLiquidityError(AppError):
    def __init__(self, liquidity: float) -> None:
        super().__init__(3004, f"Liquidity must be a positive finite number, got {liquidity}", 422)


# --- 4xxx: Bet ---

class AlreadyVotedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(4001, f"You have already voted in market {market_id}", 409)


class InvalidQuantityError(AppError):
    def __init__(self, quantity: int) -> None:
        super().__init__(4002, f"Quantity must be a positive integer, got {quantity}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvariantViolationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Invariant violated: {detail}", 500)


class UnknownOperationError(AppError):
    def __init__(self, name: str) -> None:
        super().__init__(9004, f"Unknown operation: {name}", 404)


class InvalidParamsError(AppError):
    def __init__(self, name: str, detail: str) -> None:
        super().__init__(9005, f"Invalid params for {name}: {detail}", 422)
