"""
Order statistics for the client and artist dashboards
"""
from typing import List, Optional

from database import from_iso
from models.order import Order, OrderStatus


def count_by_status(orders: List[Order]) -> dict:
    counts = {status.value: 0 for status in OrderStatus}
    for order in orders:
        counts[order.status.value] += 1
    return {"total": len(orders), **counts}


def average_response_days(orders: List[Order]) -> Optional[float]:
    """Mean days between an order being placed and being priced"""
    durations = []
    for order in orders:
        if not order.priced_at:
            continue
        delta = from_iso(order.priced_at) - from_iso(order.created_at)
        durations.append(delta.total_seconds() / 86400)
    if not durations:
        return None
    return round(sum(durations) / len(durations), 2)


def client_stats(orders: List[Order]) -> dict:
    return count_by_status(orders)


def artist_stats(orders: List[Order]) -> dict:
    stats = count_by_status(orders)
    stats["unique_clients"] = len({order.client_id for order in orders})
    stats["average_response_days"] = average_response_days(orders)
    return stats
