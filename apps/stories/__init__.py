"""
Stories app for the newsroom.

Provides the story model, the editorial stage state machine and
group publishing.
"""
