"""SQLAlchemy ORM models for users, transactions, loans and savings"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# Four fractional digits keep percentage skims of two-decimal amounts exact
Money = Numeric(18, 4)


class UserRecord(Base):
    """Registered ledger owner; email is the natural key"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    credential_hash = Column(Text, nullable=False)


class TransactionRecord(Base):
    """Append-only ledger entry"""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(Text, nullable=False)  # "Debit" | "Credit"
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=False)
    user_email = Column(Text, ForeignKey("users.email"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, server_default=func.now())


class LoanRecord(Base):
    """Loan with its amortized terms and running balance"""

    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(Text, ForeignKey("users.email"), nullable=False, index=True)
    principal_amount = Column(Money, nullable=False)
    interest_rate = Column(Numeric(9, 6), nullable=False)
    repayment_period_months = Column(Integer, nullable=False)
    outstanding_balance = Column(Money, nullable=False)
    monthly_repayment = Column(Money, nullable=True)
    status = Column(Text, nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    next_payment_date = Column(Date, nullable=True)


class SavingsRecord(Base):
    """Savings skim settings and un-swept accumulation, one row per user"""

    __tablename__ = "savings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(Text, ForeignKey("users.email"), nullable=False, unique=True)
    percentage = Column(Integer, nullable=False)
    saved_amount = Column(Money, nullable=False, default=0, server_default="0")
