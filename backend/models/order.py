from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PRICED = "priced"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = {OrderStatus.COMPLETED, OrderStatus.CANCELLED}

# Forward progression; cancellation is added for every non-terminal state
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PRICED, OrderStatus.CANCELLED},
    OrderStatus.PRICED: {OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED},
    OrderStatus.IN_PROGRESS: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


class InvoiceMaterial(BaseModel):
    name: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)


class InvoiceCreate(BaseModel):
    materials: List[InvoiceMaterial] = []
    labor_cost: float = Field(0.0, ge=0)
    notes: Optional[str] = None

    def total(self) -> float:
        materials_total = sum(m.quantity * m.unit_price for m in self.materials)
        return round(materials_total + self.labor_cost, 2)


class Invoice(BaseModel):
    model_config = ConfigDict(extra="ignore")
    invoice_id: str
    materials: List[InvoiceMaterial] = []
    labor_cost: float = 0.0
    total_price: float
    created_at: str
    notes: Optional[str] = None


class OrderComment(BaseModel):
    comment_id: str
    author_id: str
    text: str
    created_at: str


class OrderAttachment(BaseModel):
    attachment_id: str
    author_id: str
    url: str
    created_at: str


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")
    order_id: str
    client_id: str
    artist_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    title: Optional[str] = None
    description: str
    size: Optional[str] = None
    style: Optional[str] = None
    tone: Optional[str] = None
    material: Optional[str] = None
    frame_size: Optional[str] = None
    background: Optional[str] = None
    deadline: Optional[str] = None
    reference_image: Optional[str] = None
    price: Optional[float] = None
    invoice: Optional[Invoice] = None
    attachments: List[OrderAttachment] = []
    comments: List[OrderComment] = []
    created_at: str
    updated_at: str
    priced_at: Optional[str] = None
    completed_at: Optional[str] = None
    cancelled_at: Optional[str] = None


class OrderCreate(BaseModel):
    """Client-authored order attributes; everything but description is optional"""
    title: Optional[str] = None
    description: str = ""
    size: Optional[str] = None
    style: Optional[str] = None
    tone: Optional[str] = None
    material: Optional[str] = None
    frame_size: Optional[str] = None
    background: Optional[str] = None
    deadline: Optional[str] = None
    reference_image: Optional[str] = None


class StatusUpdate(BaseModel):
    status: OrderStatus


class CommentCreate(BaseModel):
    text: str


class AttachmentCreate(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip()
