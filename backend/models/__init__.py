from models.user import User, UserRole
from models.order import (
    Order, OrderCreate, OrderStatus, Invoice, InvoiceCreate, InvoiceMaterial,
    OrderComment, OrderAttachment, StatusUpdate, CommentCreate, AttachmentCreate
)
from models.presence import UserStatus
from models.chat import MessageType, MessageCreate, RoomCreate
from models.notification import NotificationType

__all__ = [
    "User", "UserRole",
    "Order", "OrderCreate", "OrderStatus", "Invoice", "InvoiceCreate", "InvoiceMaterial",
    "OrderComment", "OrderAttachment", "StatusUpdate", "CommentCreate", "AttachmentCreate",
    "UserStatus",
    "MessageType", "MessageCreate", "RoomCreate",
    "NotificationType"
]
