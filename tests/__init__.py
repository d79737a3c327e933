"""
Tests for Snake DQN
===================

Run all tests:
    pytest tests/

Run with coverage:
    pytest tests/ --cov=snake_dqn --cov-report=html
"""
