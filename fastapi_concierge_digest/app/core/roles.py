from __future__ import annotations

from enum import Enum


class RoleCode(str, Enum):
    SUPER_ADMIN = "super_admin"
    CLIENT_ADMIN = "client_admin"
    CLIENT_USER = "client_user"


DEFAULT_READ_ROLES: set[str] = {
    RoleCode.SUPER_ADMIN.value,
    RoleCode.CLIENT_ADMIN.value,
    RoleCode.CLIENT_USER.value,
}


DEFAULT_WRITE_ROLES: set[str] = {
    RoleCode.SUPER_ADMIN.value,
    RoleCode.CLIENT_ADMIN.value,
}
