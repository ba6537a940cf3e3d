"""SQLAlchemy models for katalis database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    CheckConstraint,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Business(Base):
    """Business (tenant) model."""

    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    capital_investment = Column(Numeric(18, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="business", cascade="all, delete-orphan")
    transactions = relationship(
        "Transaction", back_populates="business", cascade="all, delete-orphan"
    )


class Account(Base):
    """Chart-of-accounts model with an optional parent account."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    account_code = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    normal_balance = Column(String, nullable=False)
    parent_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    default_category = Column(String, nullable=True)
    is_system = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        UniqueConstraint("business_id", "account_code", name="uq_business_account_code"),
    )

    # Relationships
    business = relationship("Business", back_populates="accounts")
    parent = relationship("Account", remote_side=[id], backref="children")


class Transaction(Base):
    """Transaction model holding either a debit/credit pair or a legacy account label."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    date = Column(Date, nullable=False)
    category = Column(String, nullable=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    is_double_entry = Column(Boolean, default=True, nullable=False)
    debit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    credit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    account_label = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        CheckConstraint(
            "debit_account_id IS NULL OR credit_account_id IS NULL "
            "OR debit_account_id != credit_account_id",
            name="ck_transaction_distinct_accounts",
        ),
    )

    # Relationships
    business = relationship("Business", back_populates="transactions")
    debit_account = relationship("Account", foreign_keys=[debit_account_id])
    credit_account = relationship("Account", foreign_keys=[credit_account_id])


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
