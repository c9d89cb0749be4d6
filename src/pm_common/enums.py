"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    BET_COST = "BET_COST"
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"


class LedgerReferenceType(str, Enum):
    MARKET = "MARKET"
    DEPOSIT = "DEPOSIT"
