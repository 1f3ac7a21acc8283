"""Agent adapters for the competition."""

from .process_agent import ProcessAgent
from .random_agent import RandomAgent
from .scripted_agent import ScriptedAgent

__all__ = ["ProcessAgent", "RandomAgent", "ScriptedAgent"]
