import os
from typing import Optional
from sqlalchemy import create_engine, ForeignKey, Index, UniqueConstraint, Boolean, String, Text, DECIMAL, DateTime, Date
from sqlalchemy.types import Enum
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, relationship, mapped_column
from datetime import datetime, date
from decimal import Decimal
import enum


DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///networth.db")


class NotFoundError(Exception):
    pass


class UnauthorizedError(Exception):
    pass


class ValidationFailedError(ValueError):
    pass


class FetchFailedError(Exception):
    """Raised when one of the parallel net worth reads fails."""

    def __init__(self, subsystem: str, detail: str):
        self.subsystem = subsystem
        self.detail = detail
        super().__init__(f"Failed to fetch {subsystem}: {detail}")


class Base(DeclarativeBase):
    pass


class AccountType(enum.Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CURRENT = "CURRENT"
    SALARY = "SALARY"
    OTHER = "OTHER"


class InvestmentType(enum.Enum):
    STOCKS = "STOCKS"
    CRYPTO = "CRYPTO"
    MUTUAL_FUNDS = "MUTUAL_FUNDS"
    BONDS = "BONDS"
    REAL_ESTATE = "REAL_ESTATE"
    GOLD = "GOLD"
    FIXED_DEPOSIT = "FIXED_DEPOSIT"
    PROVIDENT_FUNDS = "PROVIDENT_FUNDS"
    SAFE_KEEPINGS = "SAFE_KEEPINGS"
    EMERGENCY_FUND = "EMERGENCY_FUND"
    MARRIAGE = "MARRIAGE"
    VACATION = "VACATION"
    OTHER = "OTHER"


# Held outside of banks; these never withhold money from an account balance
EXTERNAL_INVESTMENT_TYPES = frozenset({
    InvestmentType.GOLD,
    InvestmentType.BONDS,
    InvestmentType.MUTUAL_FUNDS,
    InvestmentType.CRYPTO,
    InvestmentType.REAL_ESTATE,
})


class DebtStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    FULLY_PAID = "FULLY_PAID"
    OVERDUE = "OVERDUE"
    DEFAULTED = "DEFAULTED"


class WorthEntityType(enum.Enum):
    ACCOUNT = "ACCOUNT"
    INVESTMENT = "INVESTMENT"
    DEBT = "DEBT"


class NetWorthRecordType(enum.Enum):
    AUTOMATIC = "AUTOMATIC"
    MANUAL = "MANUAL"


class UserDB(Base):
    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
        UniqueConstraint("username", name="uq_user_username"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)

    # Reporting currency; no conversion is performed on amounts
    currency: Mapped[Optional[str]] = mapped_column(String(3))

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    accounts = relationship("AccountDB", back_populates="user")
    investments = relationship("InvestmentDB", back_populates="user")
    debts = relationship("DebtDB", back_populates="user")
    net_worth_inclusions = relationship("NetWorthInclusionDB", back_populates="user", cascade="all, delete-orphan")
    networth_history = relationship("NetworthHistoryDB", back_populates="user", cascade="all, delete-orphan")


class AccountDB(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("user_id", "account_name", name="uq_user_account_name"),
        Index("idx_accounts_user_bank", "user_id", "bank_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    # Account Details
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    bank_name: Mapped[str] = mapped_column(String(255), nullable=False)  # accounts are grouped by bank for withheld amounts
    account_type: Mapped[AccountType] = mapped_column(Enum(AccountType), default=AccountType.SAVINGS)

    # Balance Tracking
    balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("UserDB", back_populates="accounts")
    investments = relationship("InvestmentDB", back_populates="account")


class InvestmentDB(Base):
    __tablename__ = "investments"

    __table_args__ = (
        Index("idx_investments_user", "user_id"),
        Index("idx_investments_account", "account_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))  # bank account holding the funds, if any

    # Holding Data
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    investment_type: Mapped[InvestmentType] = mapped_column(Enum(InvestmentType))
    symbol: Mapped[Optional[str]] = mapped_column(String(20))
    quantity: Mapped[Decimal] = mapped_column(DECIMAL(15, 6), nullable=False)
    purchase_price: Mapped[Decimal] = mapped_column(DECIMAL(15, 4), nullable=False)
    current_price: Mapped[Decimal] = mapped_column(DECIMAL(15, 4), nullable=False)
    purchase_date: Mapped[Optional[date]] = mapped_column(Date)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("UserDB", back_populates="investments")
    account = relationship("AccountDB", back_populates="investments")


class DebtDB(Base):
    """Money lent out by the user."""
    __tablename__ = "debts"

    __table_args__ = (
        Index("idx_debts_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    # Debt Data
    borrower_name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    interest_rate: Mapped[Decimal] = mapped_column(DECIMAL(7, 4), default=Decimal("0"))  # annual percentage, 5 == 5%
    lent_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date)
    status: Mapped[DebtStatus] = mapped_column(Enum(DebtStatus), default=DebtStatus.ACTIVE)
    purpose: Mapped[Optional[str]] = mapped_column(Text)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("UserDB", back_populates="debts")
    repayments = relationship(
        "DebtRepaymentDB",
        back_populates="debt",
        cascade="all, delete-orphan",
        order_by="DebtRepaymentDB.repayment_date",
    )


class DebtRepaymentDB(Base):
    __tablename__ = "debt_repayments"

    __table_args__ = (
        Index("idx_debt_repayments_debt", "debt_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    debt_id: Mapped[int] = mapped_column(ForeignKey("debts.id"))

    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    repayment_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    debt = relationship("DebtDB", back_populates="repayments")


class NetWorthInclusionDB(Base):
    """
    Per-entity override of whether an account, investment or debt counts toward net worth.
    A missing row means the entity is included.
    """
    __tablename__ = "net_worth_inclusions"

    __table_args__ = (
        UniqueConstraint("user_id", "entity_type", "entity_id", name="uq_user_entity_inclusion"),

        Index("idx_inclusions_user_entity_type", "user_id", "entity_type"),
        Index("idx_inclusions_user_included", "user_id", "include_in_net_worth"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    # No foreign key on entity_id: it points into one of three tables
    entity_type: Mapped[WorthEntityType] = mapped_column(Enum(WorthEntityType), nullable=False)
    entity_id: Mapped[int] = mapped_column(nullable=False)
    include_in_net_worth: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("UserDB", back_populates="net_worth_inclusions")


class NetworthHistoryDB(Base):
    """
    One recorded net worth snapshot per user per calendar day.
    """
    __tablename__ = "networth_history"

    __table_args__ = (
        # Re-recording the same day updates the existing row
        UniqueConstraint("user_id", "snapshot_date", name="uq_user_snapshot_date"),

        Index("idx_networth_history_user_date", "user_id", "snapshot_date"),
        Index("idx_networth_history_user_type", "user_id", "record_type"),
        Index("idx_networth_history_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    # Snapshot Totals
    total_account_balance: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), default=Decimal("0"))
    total_investment_value: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), default=Decimal("0"))
    total_investment_cost: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), default=Decimal("0"))
    total_investment_gain: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), default=Decimal("0"))
    total_investment_gain_percentage: Mapped[Decimal] = mapped_column(DECIMAL(12, 4), default=Decimal("0"))
    total_money_lent: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), default=Decimal("0"))
    total_assets: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), default=Decimal("0"))
    net_worth: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    # Metadata
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    record_type: Mapped[NetWorthRecordType] = mapped_column(Enum(NetWorthRecordType), default=NetWorthRecordType.AUTOMATIC)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("UserDB", back_populates="networth_history")


engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    # Snapshot reads run on worker threads, each with its own session
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency to get the database session
def get_db():
    database = session_local()
    try:
        yield database
    finally:
        database.close()
