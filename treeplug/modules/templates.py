"""Starter source for new modules of each kind."""

from __future__ import annotations

import uuid

from treeplug.modules.base import ModuleKind

_HEADER = '''"""{name}"""

from treeplug.modules.base import ModuleKind


class MyModule:
    name = "{name}"
    help_text = "A very short description for your module."
    author = "Your name"
    version = "1.0.0"
    module_type = ModuleKind.{kind}

    # Generated automatically; the unique identifier of this module.
    id = "{module_id}"
'''

_REPEATABLE = '''
    # Whether the module can be added more than once to the same plot.
    repeatable = True
'''

_PARAMETERS = '''
    @staticmethod
    def get_parameters(tree):
        """Return (name, type) pairs describing the parameters of this module."""
        return []

    @staticmethod
    def on_parameter_change(tree, previous_values, current_values):
        """Return (recompute, control_status, parameters_to_change)."""
        return True, {}, {}
'''

_BODIES = {
    ModuleKind.TRANSFORMER: '''
    @staticmethod
    def transform(trees, parameter_values, progress_action=None):
        return trees[0]
''',
    ModuleKind.FURTHER_TRANSFORMATION: '''
    @staticmethod
    def transform(tree, parameter_values):
        return tree
''',
    ModuleKind.COORDINATE: '''
    @staticmethod
    def get_coordinates(tree, parameter_values):
        return {}
''',
    ModuleKind.PLOTTING: '''
    @staticmethod
    def plot_action(tree, parameter_values, coordinates, graphics):
        return [(0, 0), (0, 0)]
''',
    ModuleKind.FILE_TYPE: '''
    extensions = []

    @staticmethod
    def is_supported(file_name):
        return 0.0

    @staticmethod
    def open_file(file_name, module_suggestions, progress_action=None):
        return iter(())
''',
    ModuleKind.ACTION: '''
    button_text = "Action"

    @staticmethod
    def perform_action(window, state):
        pass
''',
}


def new_module_id() -> str:
    return str(uuid.uuid4())


def new_module_source(kind: ModuleKind, name: str = "A name for your module.") -> str:
    """Render starter source for a module of the given kind with a fresh Id."""
    source = _HEADER.format(name=name.replace('"', "'"), kind=kind.name, module_id=new_module_id())
    if kind in (ModuleKind.FURTHER_TRANSFORMATION, ModuleKind.PLOTTING):
        source += _REPEATABLE
    if kind not in (ModuleKind.FILE_TYPE, ModuleKind.ACTION):
        source += _PARAMETERS
    return source + _BODIES[kind]
