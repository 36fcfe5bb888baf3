from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime
from sqlalchemy.sql import func
from app.database import Base
import uuid


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex, index=True)
    business_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    sku = Column(String, default="", index=True)
    category = Column(String, default="Other")
    unit = Column(String, default="PCS")
    sale_price = Column(Float, nullable=False, default=0.0)
    purchase_price = Column(Float, nullable=False, default=0.0)
    stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    tax_rate = Column(Float, nullable=True)  # Null means "use the business rate"
    active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
