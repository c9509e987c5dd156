# -*- coding: utf-8 -*-
"""
Filename: commands.py
Description: Discrete command intents and the keyboard bindings that produce them.

Key bindings:
    ESC          quit
    space        takeoff / landing toggle
    up / down    forward / backward
    left / right yaw left / right
    q / a        climb / descend
    c            next camera
"""

from dataclasses import dataclass
from typing import Optional, Union

# key codes as reported by cv2.waitKeyEx on Windows
KEY_ESC = 0x1B
KEY_UP = 0x260000
KEY_LEFT = 0x250000
KEY_RIGHT = 0x270000
KEY_DOWN = 0x280000


@dataclass(frozen=True)
class CommandIntent:
    """
    A single command for the vehicle link.
    Motion components are normalised to [-1, 1] and are held until the next intent.
    """
    forward: float = 0.0
    lateral: float = 0.0
    vertical: float = 0.0
    yaw_rate: float = 0.0
    toggle_flight: bool = False
    camera_step: int = 0
    quit: bool = False

    @property
    def is_hover(self) -> bool:
        return self == HOVER


HOVER = CommandIntent()

_NAMED_KEYS = {
    "esc": KEY_ESC,
    "escape": KEY_ESC,
    "space": ord(" "),
    "up": KEY_UP,
    "down": KEY_DOWN,
    "left": KEY_LEFT,
    "right": KEY_RIGHT,
}

_BINDINGS = {
    KEY_ESC: CommandIntent(quit=True),
    ord(" "): CommandIntent(toggle_flight=True),
    KEY_UP: CommandIntent(forward=1.0),
    KEY_DOWN: CommandIntent(forward=-1.0),
    KEY_LEFT: CommandIntent(yaw_rate=1.0),
    KEY_RIGHT: CommandIntent(yaw_rate=-1.0),
    ord("q"): CommandIntent(vertical=1.0),
    ord("a"): CommandIntent(vertical=-1.0),
    ord("c"): CommandIntent(camera_step=1),
}


def intent_from_key(key: Optional[Union[int, str]]) -> CommandIntent:
    """
    Map a key event to a command intent.

    Args:
        key: An integer key code (as returned by ``cv2.waitKeyEx``), a single
            character, a key name ('up', 'esc', 'space', ...) or None/-1 for
            "no key pressed".

    Returns:
        The bound intent, or HOVER for unbound keys.
    """
    if key is None:
        return HOVER
    if isinstance(key, str):
        name = key.lower()
        if name in _NAMED_KEYS:
            key = _NAMED_KEYS[name]
        elif len(key) == 1:
            key = ord(name)
        else:
            return HOVER
    return _BINDINGS.get(key, HOVER)
