"""
Role-based navigation shell.

Every role has a static menu configuration; the mapping is checked for
completeness when the module is imported.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class Role(str, Enum):
    CLIENT = "client"
    ARTIST = "artist"
    ADMIN = "admin"
    GUEST = "guest"


@dataclass(frozen=True)
class MenuItem:
    title: str
    icon: str
    href: str
    submenu: Tuple["MenuItem", ...] = ()


@dataclass(frozen=True)
class NavigationConfig:
    main_menu: Tuple[MenuItem, ...]
    footer_menu: Tuple[MenuItem, ...] = ()


_SETTINGS = MenuItem("Settings", "settings", "/settings")
_HELP = MenuItem("Help", "help-circle", "/help")
_CHAT = MenuItem("Chat", "message-square", "/sections/chat")
_NOTIFICATIONS = MenuItem("Notifications", "bell", "/notifications")

NAVIGATION: Dict[Role, NavigationConfig] = {
    Role.CLIENT: NavigationConfig(
        main_menu=(
            MenuItem("Dashboard", "home", "/sections/client"),
            MenuItem("Explore Art", "paintbrush", "/sections/client/explore"),
            MenuItem("Orders", "shopping-cart", "/sections/client/orders", submenu=(
                MenuItem("Place an order", "plus-circle", "/sections/client/buy"),
                MenuItem("My orders", "list-ordered", "/sections/client/orders"),
                MenuItem("Statistics", "bar-chart-2", "/sections/client/stats"),
            )),
            MenuItem("Favorites", "heart", "/sections/client/favorites"),
            _CHAT,
            _NOTIFICATIONS,
        ),
        footer_menu=(_SETTINGS, _HELP),
    ),
    Role.ARTIST: NavigationConfig(
        main_menu=(
            MenuItem("Dashboard", "home", "/sections/artist"),
            MenuItem("My Profile", "user", "/sections/artist/profile"),
            MenuItem("Orders", "shopping-cart", "/sections/artist/orders", submenu=(
                MenuItem("Pending orders", "list-ordered", "/sections/artist/orders"),
                MenuItem("Portfolio", "file-text", "/sections/artist/portfolio"),
                MenuItem("Statistics", "bar-chart-2", "/sections/artist/stats"),
            )),
            MenuItem("Clients", "users", "/sections/artist/clients"),
            MenuItem("Finance", "credit-card", "/sections/artist/finance"),
            _CHAT,
            _NOTIFICATIONS,
        ),
        footer_menu=(_SETTINGS, _HELP),
    ),
    Role.ADMIN: NavigationConfig(
        main_menu=(
            MenuItem("Dashboard", "home", "/dashboard"),
            MenuItem("Users", "users", "/admin/users"),
            MenuItem("Orders", "shopping-cart", "/admin/orders"),
            _NOTIFICATIONS,
        ),
        footer_menu=(_SETTINGS, _HELP),
    ),
    Role.GUEST: NavigationConfig(
        main_menu=(
            MenuItem("Home", "home", "/"),
            MenuItem("About", "info", "/home/about"),
            MenuItem("FAQ", "help-circle", "/home/faq"),
            MenuItem("Contact", "mail", "/home/contact"),
        ),
        footer_menu=(
            MenuItem("Sign in", "log-in", "/auth/login"),
            MenuItem("Register", "user-plus", "/auth/register"),
        ),
    ),
}

_missing = set(Role) - set(NAVIGATION)
if _missing:
    raise RuntimeError(f"Navigation config missing for roles: {sorted(r.value for r in _missing)}")


def parse_role(value: Optional[str]) -> Role:
    """Map a stored role string onto Role; anything unknown is a guest"""
    try:
        return Role(value)
    except ValueError:
        return Role.GUEST


def navigation_for(role: Role) -> NavigationConfig:
    return NAVIGATION[role]
