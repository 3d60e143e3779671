from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from networth.db.core import NetWorthRecordType


class NetWorthTotals(BaseModel):
    total_account_balance: Decimal
    total_investment_value: Decimal
    total_investment_cost: Decimal
    total_investment_gain: Decimal
    total_investment_gain_percentage: Decimal
    total_money_lent: Decimal
    total_assets: Decimal
    net_worth: Decimal
    currency: str


class NetWorthSnapshot(NetWorthTotals):
    """Net worth computed on demand; never persisted as-is"""
    as_of_date: datetime


class NetworthHistoryRecordCreate(BaseModel):
    record_type: NetWorthRecordType = Field(default=NetWorthRecordType.MANUAL)
    snapshot_date: Optional[date] = Field(None, description="Day to record (YYYY-MM-DD), defaults to today")


class NetworthHistoryResponse(NetWorthTotals):
    id: int
    user_id: int
    snapshot_date: date
    record_type: NetWorthRecordType
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NetworthHistoryStats(BaseModel):
    """Growth figures over a window of recorded history"""
    total_growth: Decimal
    total_growth_percentage: Decimal
    average_monthly_growth: Decimal
    highest_net_worth: Decimal
    lowest_net_worth: Decimal
    days_tracked: int
    latest_net_worth: Decimal
    previous_net_worth: Decimal
    recent_change: Decimal
    recent_change_percentage: Decimal
    record_count: int


class RecordingError(BaseModel):
    user_id: int
    email: Optional[str]
    error: str


class AutomaticRecordingResult(BaseModel):
    snapshot_date: date
    processed_users: int
    successful_records: int
    error_count: int
    errors: List[RecordingError]
