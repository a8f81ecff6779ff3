"""Fire Panel - suppression & emergency lighting control plane"""

__version__ = "1.0.0"
