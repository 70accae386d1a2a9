# UI module for ZoneClock application
from .tray import TrayApp, create_app_icon

__all__ = ['TrayApp', 'create_app_icon']
