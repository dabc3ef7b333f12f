"""SQLAlchemy ORM models for budgeting entities"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


# Money is stored as exact decimals
Money = Numeric(14, 2, asdecimal=True)


class User(Base):
    """Account owner"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(Text, nullable=True, unique=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    wallets = relationship("Wallet", back_populates="user", cascade="all, delete-orphan")
    planned_expenses = relationship("PlannedExpense", back_populates="user", cascade="all, delete-orphan")


class Wallet(Base):
    """Wallet with a running balance, mutated by transaction creation"""

    __tablename__ = "wallet"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False, default="")
    balance = Column(Money, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    user = relationship("User", back_populates="wallets")


class IncomeSource(Base):
    """Recurring income stream"""

    __tablename__ = "income_source"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_id = Column(String(36), ForeignKey("wallet.id", ondelete="SET NULL"), nullable=True)
    name = Column(Text, nullable=False, default="")
    amount = Column(Money, nullable=False)
    frequency = Column(Text, nullable=False)  # WEEKLY | BIWEEKLY | MONTHLY | ... | IRREGULAR
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class Transaction(Base):
    """Income, expense or transfer against a wallet"""

    __tablename__ = "transaction"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_id = Column(String(36), ForeignKey("wallet.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Money, nullable=False)
    type = Column(Text, nullable=False)  # INCOME | EXPENSE | TRANSFER
    date = Column(DateTime, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class PlannedExpense(Base):
    """Future expense with its last computed confidence tier"""

    __tablename__ = "planned_expense"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_id = Column(String(36), ForeignKey("wallet.id", ondelete="SET NULL"), nullable=True)
    title = Column(Text, nullable=False, default="")
    amount = Column(Money, nullable=False)
    target_date = Column(DateTime, nullable=False)
    status = Column(Text, nullable=False, default="PLANNED")
    confidence_level = Column(Text, nullable=True)  # LOW | MEDIUM | HIGH
    last_confidence_update = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    user = relationship("User", back_populates="planned_expenses")
