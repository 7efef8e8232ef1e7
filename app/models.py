from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DECIMAL,
    Date,
    DateTime,
    Enum,
    ForeignKeyConstraint,
    Index,
    Integer,
    JSON,
    LargeBinary,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

from app.constants import (
    BillingStatus,
    InvoiceStatus,
    LoyaltyTier,
    OrderStatus,
    PaymentMethod,
    PointsReason,
    ProductStatus,
    StaffRole,
)

Base = declarative_base()
metadata = Base.metadata


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Category(Base):
    __tablename__ = "categorias"
    __table_args__ = (Index("uq_categoria_nombre", "name", unique=True),)

    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(100), nullable=False)
    description = mapped_column(Text, nullable=False, server_default=text("''"))
    created_at = mapped_column(DateTime, nullable=False, default=datetime.now)

    product: Mapped[List["Product"]] = relationship(
        "Product", uselist=True, back_populates="category"
    )


class Product(Base):
    __tablename__ = "productos"
    __table_args__ = (
        ForeignKeyConstraint(
            ["category_id"], ["categorias.id"], name="fk_producto_categoria"
        ),
        Index("fk_producto_categoria", "category_id"),
        CheckConstraint("points_awarded >= 0", name="ck_producto_puntos"),
    )

    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(150), nullable=False)
    description = mapped_column(Text, nullable=False, server_default=text("''"))
    category_id = mapped_column(Integer)
    price = mapped_column(DECIMAL(10, 2), nullable=False)
    cost = mapped_column(DECIMAL(10, 2), nullable=False, server_default=text("0"))
    image_url = mapped_column(String(500))
    points_awarded = mapped_column(Integer, nullable=False, server_default=text("0"))
    status = mapped_column(
        Enum(*_values(ProductStatus), name="producto_estado"),
        nullable=False,
        default=ProductStatus.AVAILABLE.value,
    )
    is_active = mapped_column(Boolean, nullable=False, default=True)
    featured = mapped_column(Boolean, nullable=False, default=False)
    created_at = mapped_column(DateTime, nullable=False, default=datetime.now)
    updated_at = mapped_column(
        DateTime, nullable=False, default=datetime.now, onupdate=datetime.now
    )

    category: Mapped[Optional["Category"]] = relationship(
        "Category", back_populates="product"
    )
    order_line: Mapped[List["OrderLine"]] = relationship(
        "OrderLine", uselist=True, back_populates="product"
    )


class Customer(Base):
    __tablename__ = "clientes"
    __table_args__ = (
        Index("uq_cliente_email", "email", unique=True),
        CheckConstraint("loyalty_points >= 0", name="ck_cliente_puntos"),
    )

    id = mapped_column(Integer, primary_key=True)
    first_name = mapped_column(String(100), nullable=False)
    last_name = mapped_column(String(100), nullable=False, server_default=text("''"))
    email = mapped_column(String(255), nullable=False)
    phone = mapped_column(String(50))
    birth_date = mapped_column(Date)
    address = mapped_column(String(255))
    city = mapped_column(String(100))
    postal_code = mapped_column(String(20))
    document_type = mapped_column(String(30))
    document_number = mapped_column(String(50))
    business_name = mapped_column(String(255))
    loyalty_points = mapped_column(Integer, nullable=False, default=0)
    loyalty_tier = mapped_column(
        Enum(*_values(LoyaltyTier), name="cliente_nivel"),
        nullable=False,
        default=LoyaltyTier.BRONZE.value,
    )
    registered_at = mapped_column(DateTime, nullable=False, default=datetime.now)

    order: Mapped[List["Order"]] = relationship(
        "Order", uselist=True, back_populates="customer"
    )
    points_movement: Mapped[List["PointsMovement"]] = relationship(
        "PointsMovement",
        uselist=True,
        back_populates="customer",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()


class StaffUser(Base):
    __tablename__ = "usuarios"
    __table_args__ = (Index("uq_usuario_email", "email", unique=True),)

    id = mapped_column(Integer, primary_key=True)
    first_name = mapped_column(String(100), nullable=False)
    last_name = mapped_column(String(100), nullable=False)
    email = mapped_column(String(255), nullable=False)
    phone = mapped_column(String(50))
    role = mapped_column(
        Enum(*_values(StaffRole), name="usuario_rol"),
        nullable=False,
        default=StaffRole.EMPLOYEE.value,
    )
    password_hash = mapped_column(LargeBinary(72), nullable=False)
    created_at = mapped_column(DateTime, nullable=False, default=datetime.now)

    order: Mapped[List["Order"]] = relationship(
        "Order", uselist=True, back_populates="user"
    )


class Order(Base):
    __tablename__ = "ordenes"
    __table_args__ = (
        ForeignKeyConstraint(["customer_id"], ["clientes.id"], name="fk_orden_cliente"),
        ForeignKeyConstraint(
            ["user_id"], ["usuarios.id"], ondelete="SET NULL", name="fk_orden_usuario"
        ),
        Index("fk_orden_cliente", "customer_id"),
        Index("idx_orden_estado_fecha", "status", "created_at"),
    )

    id = mapped_column(Integer, primary_key=True)
    customer_id = mapped_column(Integer, nullable=False)
    user_id = mapped_column(Integer)
    status = mapped_column(
        Enum(*_values(OrderStatus), name="orden_estado"),
        nullable=False,
        default=OrderStatus.PENDING.value,
    )
    payment_method = mapped_column(
        Enum(*_values(PaymentMethod), name="orden_metodo_pago"),
        nullable=False,
        default=PaymentMethod.CASH.value,
    )
    tax_rate = mapped_column(DECIMAL(5, 4), nullable=False)
    subtotal = mapped_column(DECIMAL(10, 2), nullable=False, default=0)
    tax = mapped_column(DECIMAL(10, 2), nullable=False, default=0)
    total = mapped_column(DECIMAL(10, 2), nullable=False, default=0)
    points_earned = mapped_column(Integer, nullable=False, default=0)
    points_spent = mapped_column(Integer, nullable=False, default=0)
    notes = mapped_column(Text)
    billing_status = mapped_column(
        Enum(*_values(BillingStatus), name="orden_estado_facturacion"),
        nullable=False,
        default=BillingStatus.NOT_INVOICED.value,
    )
    created_at = mapped_column(DateTime, nullable=False, default=datetime.now)
    updated_at = mapped_column(
        DateTime, nullable=False, default=datetime.now, onupdate=datetime.now
    )

    customer: Mapped["Customer"] = relationship("Customer", back_populates="order")
    user: Mapped[Optional["StaffUser"]] = relationship(
        "StaffUser", back_populates="order"
    )
    order_line: Mapped[List["OrderLine"]] = relationship(
        "OrderLine",
        uselist=True,
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
    )
    invoice: Mapped[List["Invoice"]] = relationship(
        "Invoice", uselist=True, back_populates="order"
    )


class OrderLine(Base):
    __tablename__ = "detalles_orden"
    __table_args__ = (
        ForeignKeyConstraint(
            ["order_id"], ["ordenes.id"], ondelete="CASCADE", name="fk_detalle_orden"
        ),
        ForeignKeyConstraint(
            ["product_id"], ["productos.id"], name="fk_detalle_producto"
        ),
        Index("fk_detalle_orden", "order_id"),
        Index("fk_detalle_producto", "product_id"),
        CheckConstraint("quantity >= 1", name="ck_detalle_cantidad"),
    )

    id = mapped_column(Integer, primary_key=True)
    order_id = mapped_column(Integer, nullable=False)
    product_id = mapped_column(Integer, nullable=False)
    quantity = mapped_column(Integer, nullable=False, default=1)
    unit_price = mapped_column(DECIMAL(10, 2), nullable=False)
    subtotal = mapped_column(DECIMAL(10, 2), nullable=False)
    notes = mapped_column(Text)

    order: Mapped["Order"] = relationship("Order", back_populates="order_line")
    product: Mapped["Product"] = relationship("Product", back_populates="order_line")


class Invoice(Base):
    __tablename__ = "facturas"
    __table_args__ = (
        ForeignKeyConstraint(["order_id"], ["ordenes.id"], name="fk_factura_orden"),
        ForeignKeyConstraint(
            ["customer_id"], ["clientes.id"], name="fk_factura_cliente"
        ),
        Index("uq_factura_numero", "number", unique=True),
        Index("fk_factura_orden", "order_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    number = mapped_column(String(20), nullable=False)
    order_id = mapped_column(Integer, nullable=False)
    customer_id = mapped_column(Integer)
    issued_at = mapped_column(DateTime, nullable=False, default=datetime.now)
    subtotal = mapped_column(DECIMAL(10, 2), nullable=False)
    tax = mapped_column(DECIMAL(10, 2), nullable=False)
    total = mapped_column(DECIMAL(10, 2), nullable=False)
    status = mapped_column(
        Enum(*_values(InvoiceStatus), name="factura_estado"),
        nullable=False,
        default=InvoiceStatus.ISSUED.value,
    )
    billing_details = mapped_column(JSON)
    notes = mapped_column(Text)

    order: Mapped["Order"] = relationship("Order", back_populates="invoice")
    customer: Mapped[Optional["Customer"]] = relationship("Customer")


class PointsMovement(Base):
    __tablename__ = "movimientos_puntos"
    __table_args__ = (
        ForeignKeyConstraint(
            ["customer_id"],
            ["clientes.id"],
            ondelete="CASCADE",
            name="fk_movimiento_cliente",
        ),
        ForeignKeyConstraint(
            ["order_id"], ["ordenes.id"], ondelete="SET NULL", name="fk_movimiento_orden"
        ),
        Index("idx_movimiento_cliente_fecha", "customer_id", "created_at"),
    )

    id = mapped_column(Integer, primary_key=True)
    customer_id = mapped_column(Integer, nullable=False)
    order_id = mapped_column(Integer)
    points_change = mapped_column(Integer, nullable=False)
    balance_after = mapped_column(Integer, nullable=False)
    reason = mapped_column(
        Enum(*_values(PointsReason), name="movimiento_motivo"), nullable=False
    )
    created_at = mapped_column(DateTime, nullable=False, default=datetime.now)

    customer: Mapped["Customer"] = relationship(
        "Customer", back_populates="points_movement"
    )


class Cart(Base):
    __tablename__ = "carritos"
    __table_args__ = (
        ForeignKeyConstraint(
            ["customer_id"], ["clientes.id"], ondelete="SET NULL", name="fk_carrito_cliente"
        ),
    )

    id = mapped_column(Integer, primary_key=True)
    customer_id = mapped_column(Integer)
    tax_rate = mapped_column(DECIMAL(5, 4), nullable=False)
    created_at = mapped_column(DateTime, nullable=False, default=datetime.now)

    customer: Mapped[Optional["Customer"]] = relationship("Customer")
    cart_item: Mapped[List["CartItem"]] = relationship(
        "CartItem",
        uselist=True,
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )


class CartItem(Base):
    __tablename__ = "carrito_items"
    __table_args__ = (
        ForeignKeyConstraint(
            ["cart_id"], ["carritos.id"], ondelete="CASCADE", name="fk_ci_carrito"
        ),
        ForeignKeyConstraint(["product_id"], ["productos.id"], name="fk_ci_producto"),
        Index("uq_ci_carrito_producto", "cart_id", "product_id", unique=True),
        CheckConstraint("qty >= 1", name="ck_ci_cantidad"),
    )

    id = mapped_column(Integer, primary_key=True)
    cart_id = mapped_column(Integer, nullable=False)
    product_id = mapped_column(Integer, nullable=False)
    qty = mapped_column(Integer, nullable=False, default=1)
    notes = mapped_column(Text)
    added_at = mapped_column(DateTime, nullable=False, default=datetime.now)

    cart: Mapped["Cart"] = relationship("Cart", back_populates="cart_item")
    product: Mapped["Product"] = relationship("Product")
