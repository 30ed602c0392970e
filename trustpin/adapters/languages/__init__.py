"""
Language runtime adapters.
"""

from trustpin.adapters.languages.go import GoAdapter
from trustpin.adapters.languages.java import JavaAdapter
from trustpin.adapters.languages.node import NodeAdapter
from trustpin.adapters.languages.python import PythonAdapter
from trustpin.adapters.languages.ruby import RubyAdapter
from trustpin.adapters.languages.rust import RustAdapter

LANGUAGE_ADAPTERS = (
    PythonAdapter(),
    NodeAdapter(),
    GoAdapter(),
    RustAdapter(),
    RubyAdapter(),
    JavaAdapter(),
)

__all__ = [
    "GoAdapter",
    "JavaAdapter",
    "LANGUAGE_ADAPTERS",
    "NodeAdapter",
    "PythonAdapter",
    "RubyAdapter",
    "RustAdapter",
]
