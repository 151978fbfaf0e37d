"""
NoteVault - versioned notes with live multi-client views

Notes keep every prior version; any version can be restored, and all
connected clients converge on the same note list as edits land.
"""

__version__ = "1.0.0"
