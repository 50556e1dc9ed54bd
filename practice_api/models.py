import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

Money = Numeric(12, 2)
Rate = Numeric(5, 4)


def generate_uuid():
    return str(uuid.uuid4())


class SlotStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    BLOCKED = "BLOCKED"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class SaleStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PurchaseStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class QuotationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class EntryType(str, enum.Enum):
    INCOME = "ingreso"
    EXPENSE = "egreso"


class TransactionType(str, enum.Enum):
    NONE = "N/A"
    SALE = "VENTA"
    PURCHASE = "COMPRA"


class PaymentMethod(str, enum.Enum):
    CASH = "efectivo"
    TRANSFER = "transferencia"
    CARD = "tarjeta"
    CHECK = "cheque"
    DEPOSIT = "deposito"


class TaskStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=True)  # E.164, used for booking SMS
    specialty = Column(String(255), nullable=True)
    clinic_address = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    business_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    business_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class AppointmentSlot(Base):
    __tablename__ = "appointment_slots"
    __table_args__ = (
        UniqueConstraint("doctor_id", "date", "start_time", name="uq_slot_doctor_date_start"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    base_price = Column(Money, nullable=False)
    discount = Column(Money, nullable=True)
    discount_type = Column(String(20), nullable=True)  # PERCENTAGE, FIXED
    final_price = Column(Money, nullable=False)
    max_bookings = Column(Integer, nullable=False, default=1)
    current_bookings = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=SlotStatus.AVAILABLE.value)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="slot", cascade="all, delete-orphan")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    slot_id = Column(String(36), ForeignKey("appointment_slots.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    patient_name = Column(String(255), nullable=False)
    patient_email = Column(String(255), nullable=False)
    patient_phone = Column(String(30), nullable=False)
    patient_whatsapp = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    final_price = Column(Money, nullable=False)  # Copied from the slot, never recomputed
    confirmation_code = Column(String(16), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    confirmed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    slot = relationship("AppointmentSlot", back_populates="bookings")


class Quotation(Base):
    __tablename__ = "quotations"
    __table_args__ = (
        UniqueConstraint("doctor_id", "quotation_number", name="uq_quotations_doctor_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    quotation_number = Column(String(50), nullable=False)
    issue_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=QuotationStatus.DRAFT.value)
    subtotal = Column(Money, nullable=False, default=0)
    tax = Column(Money, nullable=False, default=0)
    total = Column(Money, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client")
    items = relationship(
        "QuotationItem",
        cascade="all, delete-orphan",
        order_by="QuotationItem.order",
    )


class Sale(Base):
    __tablename__ = "sales"
    __table_args__ = (UniqueConstraint("sale_number", name="uq_sales_sale_number"),)

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    quotation_id = Column(Integer, ForeignKey("quotations.id"), nullable=True)
    sale_number = Column(String(50), nullable=False)  # Unique across all doctors
    sale_date = Column(Date, nullable=False)
    delivery_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=SaleStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    amount_paid = Column(Money, nullable=False, default=0)
    subtotal = Column(Money, nullable=False, default=0)
    tax = Column(Money, nullable=False, default=0)
    total = Column(Money, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client")
    items = relationship("SaleItem", cascade="all, delete-orphan", order_by="SaleItem.order")


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (
        UniqueConstraint("doctor_id", "purchase_number", name="uq_purchases_doctor_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)
    purchase_number = Column(String(50), nullable=False)
    purchase_date = Column(Date, nullable=False)
    delivery_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=PurchaseStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    amount_paid = Column(Money, nullable=False, default=0)
    subtotal = Column(Money, nullable=False, default=0)
    tax = Column(Money, nullable=False, default=0)
    total = Column(Money, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    supplier = relationship("Supplier")
    items = relationship(
        "PurchaseItem", cascade="all, delete-orphan", order_by="PurchaseItem.order"
    )


class _LineItemColumns:
    """Columns shared by quotation, sale and purchase line items"""

    id = Column(Integer, primary_key=True)
    description = Column(String(500), nullable=False)
    item_type = Column(String(20), nullable=False, default="service")  # product, service
    quantity = Column(Numeric(12, 3), nullable=False)
    unit = Column(String(30), nullable=False, default="unit")
    unit_price = Column(Money, nullable=False)
    discount_rate = Column(Rate, nullable=False, default=0)
    tax_rate = Column(Rate, nullable=False, default=0)
    subtotal = Column(Money, nullable=False)
    tax = Column(Money, nullable=False)
    order = Column(Integer, nullable=False, default=0)


class QuotationItem(_LineItemColumns, Base):
    __tablename__ = "quotation_items"

    quotation_id = Column(Integer, ForeignKey("quotations.id"), nullable=False, index=True)


class SaleItem(_LineItemColumns, Base):
    __tablename__ = "sale_items"

    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)


class PurchaseItem(_LineItemColumns, Base):
    __tablename__ = "purchase_items"

    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False, index=True)


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint("doctor_id", "internal_id", name="uq_ledger_doctor_internal_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    internal_id = Column(String(50), nullable=False)  # ING-2025-001 / EGR-2025-001
    entry_type = Column(String(10), nullable=False)  # ingreso, egreso
    amount = Column(Money, nullable=False)
    concept = Column(String(500), nullable=False)
    transaction_date = Column(Date, nullable=False)
    area = Column(String(100), nullable=False, default="General")
    subarea = Column(String(100), nullable=False, default="General")
    payment_method = Column(String(20), nullable=True)  # efectivo, transferencia, tarjeta...
    bank_account = Column(String(100), nullable=True)
    bank_movement_id = Column(String(100), nullable=True)
    unrealized = Column(Boolean, nullable=False, default=False)  # Projected, not yet realized
    transaction_type = Column(String(10), nullable=False, default=TransactionType.NONE.value)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), unique=True, nullable=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), unique=True, nullable=True)
    payment_status = Column(String(20), nullable=True)
    amount_paid = Column(Money, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def is_linked(self) -> bool:
        return self.sale_id is not None or self.purchase_id is not None


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    start_time = Column(String(5), nullable=True)  # HH:MM format
    end_time = Column(String(5), nullable=True)
    priority = Column(String(10), nullable=False, default=TaskPriority.MEDIUM.value)
    status = Column(String(20), nullable=False, default=TaskStatus.PENDING.value)
    category = Column(String(50), nullable=False, default="OTRO")
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ActivityLog(Base):
    """Append-only audit trail shown on the doctor's dashboard"""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    action_type = Column(String(50), nullable=False)
    entity_type = Column(String(30), nullable=False)
    entity_id = Column(String(50), nullable=False)
    display_message = Column(String(500), nullable=False)
    icon = Column(String(30), nullable=True)
    color = Column(String(20), nullable=True)
    details = Column(JSON, nullable=True)  # "metadata" is reserved on declarative models
    created_at = Column(DateTime, server_default=func.now())
