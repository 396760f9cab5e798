"""Presenter - renders a decoded Menu or an error message as text."""

from __future__ import annotations

import sys
from typing import Optional, Protocol, TextIO

from menu_scanner.models import Menu, MenuItem


class Presenter(Protocol):
    def show_menu(self, menu: Menu) -> None: ...

    def show_error(self, message: str) -> None: ...


def format_price(price: float, currency: str) -> str:
    return "%.2f %s" % (price, currency)


def render_item(item: MenuItem, currency: str) -> list[str]:
    lines = [f"  {item.name} — {format_price(item.price, currency)}"]
    if item.description:
        lines.append(f"      {item.description}")
    return lines


def render_menu(menu: Menu) -> str:
    """Renders a menu as plain text, one item per line, in display order."""
    lines = []
    if menu.restaurant_name:
        lines.append(menu.restaurant_name)
        lines.append("=" * len(menu.restaurant_name))

    for section in menu.sections:
        lines.append("")
        lines.append(f"[{section.category_name}]")
        if section.description:
            lines.append(f"  {section.description}")
        if section.available_styles:
            lines.append(f"  Available Styles: {', '.join(section.available_styles)}")
        for item in section.items:
            lines.extend(render_item(item, menu.currency))

    if not menu.sections:
        lines.append("No menu sections found")
    return "\n".join(lines)


class TextPresenter:
    """Writes menus to stdout and errors to stderr."""

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def show_menu(self, menu: Menu) -> None:
        print(render_menu(menu), file=self.out)

    def show_error(self, message: str) -> None:
        print(f"Error: {message}", file=self.err)
