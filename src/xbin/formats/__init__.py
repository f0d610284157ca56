from .version import FormatVersion
from .xdata import XDataHeader
from .msgfilter import FontFilter, MsgFilter
from .scene_preload import Scene, ScenePreload

__all__ = [
    "FormatVersion",
    "XDataHeader",
    "FontFilter",
    "MsgFilter",
    "Scene",
    "ScenePreload",
]
