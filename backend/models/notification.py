from enum import Enum


class NotificationType(str, Enum):
    NEW_ORDER = "new_order"
    QUOTE = "quote"
    UPDATE = "update"
