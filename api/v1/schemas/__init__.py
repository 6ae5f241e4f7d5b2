"""Re-export individual schema modules for easy imports."""

from .common import NotificationOut
from .auth import LoginIn, LoginOut, LoginPage
from .content import ContentItemOut, ContentListOut, DeleteOut
from .dashboard import DashboardOut
from .editor import EditorOut, KindIn, SubmitOut

__all__ = [
    "NotificationOut",
    "LoginIn",
    "LoginOut",
    "LoginPage",
    "ContentItemOut",
    "ContentListOut",
    "DeleteOut",
    "DashboardOut",
    "EditorOut",
    "KindIn",
    "SubmitOut",
]
