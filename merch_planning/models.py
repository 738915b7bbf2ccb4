# merch_planning/models.py
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey, Text, Index
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
import enum

Base = declarative_base()

class Category(enum.Enum):
    """Enum for product categories.

    Values:
        CLOTHING ('Clothing'): Apparel
        SHOES ('Shoes'): Footwear
        ACCESSORIES ('Accessories'): Bags, belts, jewellery
        GENERAL_GOODS ('GeneralGoods'): Everything else
    """
    CLOTHING = 'Clothing'
    SHOES = 'Shoes'
    ACCESSORIES = 'Accessories'
    GENERAL_GOODS = 'GeneralGoods'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> 'Category':
        """Create a Category from a string value.

        Raises:
            ValueError if the string value is not valid
        """
        try:
            return cls(value)
        except ValueError:
            valid = ', '.join(c.value for c in cls)
            raise ValueError(f"Invalid category: {value}. Valid values are: {valid}")

class ProductStatus(enum.Enum):
    """Production stage of a product, in kanban order."""
    PLAN = 'Plan'
    SAMPLE = 'Sample'
    PRODUCTION = 'Production'
    RELEASED = 'Released'

    def __str__(self):
        return self.value

    @classmethod
    def from_string(cls, value: str) -> 'ProductStatus':
        try:
            return cls(value)
        except ValueError:
            valid = ', '.join(s.value for s in cls)
            raise ValueError(f"Invalid status: {value}. Valid values are: {valid}")

class OrderType(enum.Enum):
    SAMPLE = 'Sample'
    NEW = 'New'
    REORDER = 'Reorder'

    def __str__(self):
        return self.value

class Product(Base):
    """Product plan record."""
    __tablename__ = 'product'

    id = Column(String(64), primary_key=True)
    season = Column(String(20), nullable=False)  # e.g. "2024 S/S"
    category = Column(String(20), default=Category.CLOTHING.value)
    brand = Column(String(50))
    item_name = Column(String(255), default='')
    sku = Column(String(20), index=True)
    status = Column(String(20), default=ProductStatus.PLAN.value)
    order_type = Column(String(20), default=OrderType.NEW.value)
    supplier = Column(String(100), default='')
    factory = Column(String(100), default='')
    material = Column(String(255))

    # Author info
    author = Column(String(100))
    department = Column(String(100))
    author_uid = Column(String(128))

    # Plan document
    plan_url = Column(String(500))
    plan_file_url = Column(String(500))

    # Planning data
    plan_qty = Column(Integer, default=0)
    cost_price = Column(Float, default=0.0)
    retail_price = Column(Float, default=0.0)
    target_sell_through = Column(Float, default=0.0)  # Percentage 0-100
    marketing_budget = Column(Float, default=0.0)

    # Sales data
    sales_start_date = Column(String(10))  # YYYY-MM-DD
    sales_end_date = Column(String(10))
    actual_sold_qty = Column(Integer)  # Recorded at season end
    is_season_ended = Column(Boolean, default=False)

    # SKU breakdown inputs
    color_list = Column(String(255), default='')  # e.g. "Black, White"
    size_list = Column(String(255), default='')   # e.g. "S, M, L"

    # Asset URLs
    design_image = Column(String(500))
    trim_image = Column(String(500))
    package_image = Column(String(500))
    tag_image = Column(String(500))

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    sku_breakdown = relationship(
        "SkuBreakdownLine",
        back_populates="product",
        order_by="SkuBreakdownLine.position",
        cascade="all, delete-orphan"
    )
    comments = relationship(
        "Comment",
        back_populates="product",
        order_by="Comment.created_at",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('ix_product_season_category', 'season', 'category'),
    )

    def __repr__(self):
        return f"<Product(id='{self.id}', sku='{self.sku}', season='{self.season}')>"

class SkuBreakdownLine(Base):
    """Per color/size allocation of a product's planned quantity."""
    __tablename__ = 'sku_breakdown_line'

    id = Column(Integer, primary_key=True)
    product_id = Column(String(64), ForeignKey('product.id'), nullable=False)
    position = Column(Integer, nullable=False)
    color = Column(String(50), nullable=False)
    size = Column(String(20), nullable=False)
    ratio = Column(Integer, default=0)  # Percentage 0-100
    qty = Column(Integer, default=0)

    product = relationship("Product", back_populates="sku_breakdown")

class Comment(Base):
    __tablename__ = 'comment'

    id = Column(Integer, primary_key=True)
    product_id = Column(String(64), ForeignKey('product.id'), nullable=False)
    text = Column(Text, nullable=False)
    author = Column(String(100), default='Unknown')
    created_at = Column(DateTime, nullable=False)

    product = relationship("Product", back_populates="comments")

class SkuCounter(Base):
    """Last issued SKU number per brand prefix."""
    __tablename__ = 'sku_counter'

    prefix = Column(String(5), primary_key=True)
    last_value = Column(Integer, default=0, nullable=False)
