"""
Snake DQN - Source Package
==========================

This package contains all the components for training a Deep Q-Network
to play a grid-based snake game.

Modules:
    game/   - Headless snake game and state encoding
    ai/     - Q-network, agent, replay memory and training loop
    utils/  - Logging and validation helpers
"""

__version__ = "1.0.0"
