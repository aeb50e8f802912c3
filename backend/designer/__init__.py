"""
Agent Workflow Designer — authoring-time graph model.

Holds the in-memory workflow graph edited by the visual designer,
the operator configuration schemas, and the validation that runs
while a workflow is being authored.

Architecture:
    utils/      — versioned entity identifiers
    config/     — editor settings (env-backed dataclasses)
    workflow/   — graph model, store, operators, validator, coordinator
    editor/     — collaborators consumed by the presentation layer
"""

__version__ = "0.4.0"
