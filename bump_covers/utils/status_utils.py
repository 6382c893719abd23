# bump_covers/utils/status_utils.py
"""One-line progress messages that overwrite themselves (notebook or terminal)."""

_WIDTH = 80


def _status(msg: str, *, width: int = _WIDTH):
    try:
        from IPython.display import clear_output
        clear_output(wait=True)
        print(msg)
    except ImportError:
        print("\r" + msg.ljust(int(width)), end="", flush=True)


def _status_clear(*, width: int = _WIDTH):
    try:
        from IPython.display import clear_output
        clear_output(wait=True)
    except ImportError:
        print("\r" + (" " * int(width)), end="\r", flush=True)
