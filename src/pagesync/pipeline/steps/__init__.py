"""Pipeline steps for extraction runs."""

from .parse import ParseStep
from .render import RenderStep
from .save import SaveStep
from .serialize import SerializeStep

__all__ = [
    "ParseStep",
    "RenderStep",
    "SaveStep",
    "SerializeStep",
]
