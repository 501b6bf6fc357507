"""Path utilities for consistent path handling across packages."""

import unicodedata
from pathlib import Path


def normalize_path(path: Path | str) -> str:
    """
    Normalize a path for consistent storage and comparison across all packages.
    
    Applies:
    - Unicode NFC normalization (canonical composition)
    - Forward slash conversion, so archive entry names written on Windows
      (``images\\photo.jpg``) compare equal to their POSIX form
    
    Args:
        path: Path object or string to normalize
        
    Returns:
        Normalized path string with forward slashes and NFC Unicode normalization
        
    Examples:
        >>> normalize_path("images/café.jpg")
        'images/café.jpg'
        >>> normalize_path(r"images\\drill.jpg")
        'images/drill.jpg'
    """
    path_str = str(path)
    
    normalized = unicodedata.normalize('NFC', path_str)
    
    normalized = normalized.replace('\\', '/')
    
    return normalized
