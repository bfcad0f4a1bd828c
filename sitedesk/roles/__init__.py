"""Per-role routers: main menus plus the flows each role may run."""

from sitedesk.roles.admin import AdminRouter
from sitedesk.roles.base import Menu, MenuEntry, RoleRouter
from sitedesk.roles.customer import CustomerRouter
from sitedesk.roles.employee import EmployeeRouter, NoticeVerifier, Verifier

__all__ = [
    "AdminRouter",
    "CustomerRouter",
    "EmployeeRouter",
    "Menu",
    "MenuEntry",
    "NoticeVerifier",
    "RoleRouter",
    "Verifier",
]
