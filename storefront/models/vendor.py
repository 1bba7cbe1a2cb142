"""
Vendor model

A vendor is a seller account attached to exactly one user. Applications start
PENDING; products are linked to a vendor through Product.vendor_id.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.core.utils import utcnow


class VendorStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    business_name = Column(String(200), nullable=False)
    business_email = Column(String, unique=True, index=True, nullable=False)
    business_phone = Column(String(30))
    description = Column(Text, nullable=False)
    address = Column(String(500))
    city = Column(String(100))
    country = Column(String(100), nullable=False)
    tax_id = Column(String(50))

    status = Column(SQLEnum(VendorStatus), default=VendorStatus.PENDING, nullable=False, index=True)
    # Percentage of revenue kept by the store
    commission = Column(Numeric(5, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="vendor")
    products = relationship("Product", back_populates="vendor")

    def __repr__(self):
        return f"<Vendor(id={self.id}, business='{self.business_name}', status={self.status})>"
