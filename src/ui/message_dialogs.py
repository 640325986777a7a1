from __future__ import annotations

from typing import Optional

from PySide6 import QtWidgets

from src.core.errors import UserFacingError


def format_user_error(error: UserFacingError) -> str:
    body = error.args[0] if error.args else "An error occurred."
    if error.remediation:
        body = f"{body}\n\n{error.remediation}"
    return body


def show_user_error(error: UserFacingError, parent: Optional[QtWidgets.QWidget] = None) -> None:
    if parent is None:
        parent = QtWidgets.QApplication.activeWindow()
    QtWidgets.QMessageBox.critical(parent, error.title, format_user_error(error))


__all__ = ["format_user_error", "show_user_error"]
