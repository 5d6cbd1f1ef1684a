"""
Property-based tests for the CHIP-8 interpreter.

Hypothesis drives these with random register values, sprites and addresses;
set ``CHIP8_PROP_EXAMPLES`` to raise the example count for longer runs.
"""
