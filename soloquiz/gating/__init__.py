"""Action gating.

Each player action has a small pipeline of rules; the first rule that objects
supplies the reason shown next to the disabled control.
"""
