"""Game engine: deck, flip state machine, countdown clock and scoring.

Nothing in this package touches Flask, the database or Socket.IO;
``tilematch.services.sessions`` wires the engine to the transport layer.
"""
from .constants import ConfigurationError, GameSettings
from .engine import GameSession
from .state import GameState, GameStatus

__all__ = ['ConfigurationError', 'GameSettings', 'GameSession', 'GameState', 'GameStatus']
