"""Data models for Menu Scanner: Menu, MenuSection, MenuItem."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from menu_scanner.errors import ShapeMismatch


@dataclass(frozen=True)
class MenuItem:
    name: str
    price: float
    description: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4, compare=False)

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
        }

    @classmethod
    def from_json(cls, data: Any) -> MenuItem:
        obj = _require_object(data, "menu item")
        return cls(
            name=_require_str(obj, "name"),
            description=_optional_str(obj, "description"),
            price=_require_number(obj, "price"),
        )


@dataclass(frozen=True)
class MenuSection:
    category_name: str
    items: tuple[MenuItem, ...] = ()
    description: Optional[str] = None
    available_styles: Optional[tuple[str, ...]] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4, compare=False)

    def to_json(self) -> dict:
        return {
            "category_name": self.category_name,
            "description": self.description,
            "available_styles": (
                list(self.available_styles)
                if self.available_styles is not None
                else None
            ),
            "items": [item.to_json() for item in self.items],
        }

    @classmethod
    def from_json(cls, data: Any) -> MenuSection:
        obj = _require_object(data, "menu section")
        styles = obj.get("available_styles")
        if styles is not None:
            if not isinstance(styles, list) or not all(
                isinstance(s, str) for s in styles
            ):
                raise ShapeMismatch("'available_styles' must be a list of strings")
            styles = tuple(styles)
        return cls(
            category_name=_require_str(obj, "category_name"),
            description=_optional_str(obj, "description"),
            available_styles=styles,
            items=tuple(
                MenuItem.from_json(item) for item in _require_list(obj, "items")
            ),
        )


@dataclass(frozen=True)
class Menu:
    currency: str
    sections: tuple[MenuSection, ...] = ()
    restaurant_name: Optional[str] = None

    def to_json(self) -> dict:
        return {
            "restaurant_name": self.restaurant_name,
            "currency": self.currency,
            "sections": [section.to_json() for section in self.sections],
        }

    @classmethod
    def from_json(cls, data: Any) -> Menu:
        """Strictly decode a wire-format menu object.

        Unknown keys are ignored and optional keys may be missing or null.
        Raises: ShapeMismatch on any structural violation.
        """
        obj = _require_object(data, "menu")
        return cls(
            restaurant_name=_optional_str(obj, "restaurant_name"),
            currency=_require_str(obj, "currency"),
            sections=tuple(
                MenuSection.from_json(s) for s in _require_list(obj, "sections")
            ),
        )


def _require_object(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ShapeMismatch(f"Expected {what} object, got {type(data).__name__}")
    return data


def _require_str(obj: dict, key: str) -> str:
    if key not in obj:
        raise ShapeMismatch(f"Missing required key '{key}'")
    value = obj[key]
    if not isinstance(value, str):
        raise ShapeMismatch(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _optional_str(obj: dict, key: str) -> Optional[str]:
    value = obj.get(key)
    if value is not None and not isinstance(value, str):
        raise ShapeMismatch(f"'{key}' must be a string or null")
    return value


def _require_list(obj: dict, key: str) -> list:
    if key not in obj:
        raise ShapeMismatch(f"Missing required key '{key}'")
    value = obj[key]
    if not isinstance(value, list):
        raise ShapeMismatch(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def _require_number(obj: dict, key: str) -> float:
    if key not in obj:
        raise ShapeMismatch(f"Missing required key '{key}'")
    value = obj[key]
    # bool is an int subclass but never a valid price
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ShapeMismatch(f"'{key}' must be a number, got {type(value).__name__}")
    return float(value)
