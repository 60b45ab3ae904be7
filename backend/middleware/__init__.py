from middleware.route_guard import RouteGuardMiddleware, guard_request

__all__ = ["RouteGuardMiddleware", "guard_request"]
