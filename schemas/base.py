"""
Base schemas shared by all transform option records.
"""

from typing import Any, Dict, Optional, Tuple, Type, TypeVar, Union

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T", bound="BaseOptions")


class RGBAColor(BaseModel):
    """Color given as channels; alpha is a 0-1 fraction."""

    r: int = Field(default=0, ge=0, le=255)
    g: int = Field(default=0, ge=0, le=255)
    b: int = Field(default=0, ge=0, le=255)
    alpha: float = Field(default=1.0, ge=0.0, le=1.0)


# CSS color string ("#ff0000", "red", "rgb(0,0,255)") or channel record
Color = Union[str, RGBAColor]


def color_to_rgba(color: Optional[Color], default: Tuple[int, int, int, int]) -> Tuple[int, ...]:
    """
    Resolve a Color to an (r, g, b, a) tuple with 0-255 channels.

    Args:
        color: Color value or None
        default: Value used when color is None

    Returns:
        RGBA tuple

    Raises:
        ValueError: If a color string cannot be parsed
    """
    if color is None:
        return default
    if isinstance(color, RGBAColor):
        return (color.r, color.g, color.b, round(color.alpha * 255))
    if isinstance(color, dict):
        return color_to_rgba(RGBAColor(**color), default)

    rgba = ImageColor.getrgb(color)
    if len(rgba) == 3:
        return (*rgba, 255)
    return tuple(rgba)


class BaseOptions(BaseModel):
    """
    Base class for all operation option records.

    Fields are optional with documented defaults. Unknown keys are rejected;
    both snake_case and camelCase keys are accepted.
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, enum values as strings."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def prepare(cls: Type[T], options: Optional[Union[T, Dict[str, Any]]]) -> T:
        """
        Resolve options once at the operation boundary.

        None gives an instance with all defaults, a dict is validated,
        an instance is returned unchanged.
        """
        if options is None:
            return cls()
        if isinstance(options, dict):
            return cls.model_validate(options)
        return options
