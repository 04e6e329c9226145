import pytest
import tkinter as tk

from sandbox.config import Hotkeys
from sandbox.gui.field_view import FieldView


@pytest.fixture
def root():
    try:
        r = tk.Tk()
    except tk.TclError:
        pytest.skip("Tk display not available")
    r.withdraw()
    try:
        yield r
    finally:
        r.destroy()


@pytest.fixture
def view(root, store):
    v = FieldView(root, store, width=600, height=400)
    v.configure_hotkeys(Hotkeys())
    return v


class DummyEventNamespace(tk.Event):
    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, value)
