"""
rbmin - Ruby gem manager
Installs gems into named environments for several Ruby interpreters at once.
"""

__version__ = "0.1.0"
