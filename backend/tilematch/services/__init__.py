"""Domain services: the game engine and lead/score collaborators.

HTTP routes and socket handlers import from here, keeping transport
concerns separated from core game mechanics.
"""
