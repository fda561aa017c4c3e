"""Audit pipeline: phase graph, prompts, and the orchestrator state machine."""
