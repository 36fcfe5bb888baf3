from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String, primary_key=True, index=True)
    invoice_id = Column(String, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)  # Order of recording within the invoice
    date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    method = Column(String, nullable=False, default="cash")  # cash, bank, cheque, online
    note = Column(String, default="")
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="payments")
