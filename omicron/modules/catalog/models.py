from omicron.database.database import Base
from sqlalchemy import Column, Integer, String, Numeric, CheckConstraint, UniqueConstraint, Uuid
from omicron.common.mixins import TimestampMixin, SoftDeleteMixin
from uuid import uuid4


class Product(Base, TimestampMixin, SoftDeleteMixin):
    """
    Artículos del catálogo con su stock vivo

    El stock solo cambia a través de CatalogService.adjust_stock
    (ventas, cancelaciones y resurtidos).
    """
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    brand = Column(String(100), nullable=False, index=True)
    model = Column(String(150), nullable=False, index=True)
    type = Column(String(100), nullable=False, default="")
    color = Column(String(50), nullable=False, default="")
    category = Column(String(100), nullable=False, default="")
    price = Column(Numeric(15, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    scan_code = Column(String(100), nullable=True)  # Código QR / barras

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        UniqueConstraint("scan_code", name="uq_product_scan_code"),
    )

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}".strip()
