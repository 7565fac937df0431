"""
Script module - Parse test scripts into steps and render recordings as scripts.
"""

from synthqa.script.parser import ScriptParser, parse_script
from synthqa.script.generator import ScriptGenerator
from synthqa.script.conversion import steps_from_recording, step_from_action

__all__ = [
    "ScriptParser",
    "parse_script",
    "ScriptGenerator",
    "steps_from_recording",
    "step_from_action",
]
