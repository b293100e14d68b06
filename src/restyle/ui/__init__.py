"""Gradio UI for Restyle Image Generator.

Modules
-------
app
    Blocks layout for the Style Transfer and Prompt Studio tabs.
handlers
    Event handlers (uploads, runs, clearing results).
models
    Per-session UIState and display constants.
state
    Lazy session initialization and snapshot streaming.
"""
