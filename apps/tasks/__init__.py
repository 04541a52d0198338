"""
Tasks app for the newsroom.

Turns editorial stage changes into assigned units of work.
"""
