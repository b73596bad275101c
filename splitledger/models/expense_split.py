from sqlalchemy import Column, Integer, ForeignKey, Boolean, DateTime, Enum, UniqueConstraint, false
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from splitledger.core.splits import SplitType
from splitledger.db.session import Base
from splitledger.models.types import MoneyType

class ExpenseSplit(Base):
    __tablename__ = "expense_splits"
    __table_args__ = (UniqueConstraint("expense_id", "user_id"),)

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(MoneyType, nullable=False)
    split_type = Column(Enum(SplitType, name="split_type"), nullable=False, default=SplitType.EQUAL)
    percentage = Column(MoneyType, nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    expense = relationship("Expense", back_populates="splits")
