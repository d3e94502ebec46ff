import logging

log = logging.getLogger("Keyboard")


def resolve_key(name: str):
    """
    Map a key name to something pynput can press.
    Single characters are pressed as they are, longer names must be a
    pynput special key (space, enter, page_down, ...).
    """
    if len(name) == 1:
        return name

    from pynput.keyboard import Key

    special = getattr(Key, name.lower(), None)
    if special is None:
        raise ValueError(f"Unknown key: {name}")
    return special


class KeyboardInput:
    """Taps one key on the host keyboard"""

    def __init__(self, key_name: str = "space", controller=None):
        # pynput needs a display on X11, so it is only imported once a keyboard is wanted
        if controller is None:
            from pynput.keyboard import Controller
            controller = Controller()
        self.controller = controller
        self.key_name = key_name
        self.key = resolve_key(key_name)

    def tap(self):
        self.controller.press(self.key)
        self.controller.release(self.key)
        log.debug(f"Tapped {self.key_name}")
