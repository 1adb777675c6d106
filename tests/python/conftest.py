# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Pytest configuration for TensorWire Python tests.
"""

import sys
from pathlib import Path

# Add the project root to sys.path so we can import tensorwire
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# Skip test modules that require optional dependencies not installed
collect_ignore = []

# Check for hypothesis
try:
    import hypothesis  # noqa: F401
except ImportError:
    collect_ignore.append("test_property_based.py")
