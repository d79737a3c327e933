"""
AI Module
=========

Deep Q-Learning components for playing snake.

Classes:
    DQN          - Convolutional Q-network
    Agent        - DQN agent with linear epsilon-greedy exploration
    ReplayMemory - Bounded experience memory
    Trainer      - Training loop orchestration
"""

from .network import DQN, copy_weights, save_weights, load_weights
from .agent import Agent, PlayStepOutput, linear_epsilon, compute_td_targets
from .replay_memory import ReplayMemory, Transition
from .trainer import Trainer, MovingAverager, LoopDecision, TrainingResult, check_termination

__all__ = [
    'DQN', 'copy_weights', 'save_weights', 'load_weights',
    'Agent', 'PlayStepOutput', 'linear_epsilon', 'compute_td_targets',
    'ReplayMemory', 'Transition',
    'Trainer', 'MovingAverager', 'LoopDecision', 'TrainingResult', 'check_termination',
]
